"""Remote sandbox access."""

from sandboxer.sandbox.client import SandboxCliClient, SandboxClient
from sandboxer.sandbox.models import CodeVersion, SandboxInfo

__all__ = ["SandboxClient", "SandboxCliClient", "SandboxInfo", "CodeVersion"]
