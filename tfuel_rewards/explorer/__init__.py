"""
Theta explorer integration: async HTTP client and boundary schemas.

Payloads are validated at the boundary into typed models; a malformed record
is dropped, a malformed top-level payload raises UpstreamDataError.
"""

from tfuel_rewards.explorer.client import EXPLORER_SERVICE, ExplorerClient  # noqa: F401

__all__ = ["EXPLORER_SERVICE", "ExplorerClient"]
