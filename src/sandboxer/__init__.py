"""Realm sandbox management and reference storefront deployment."""

__version__ = "0.1.0"
