"""
CLI for sandboxer.
"""
