"""
Console client for the agent middleware service.

This package authenticates the user with Microsoft Entra ID and relays
chat messages to the agent service, keeping track of the active
conversation thread.
"""

__version__ = "1.0.0"

from .auth import CancellationToken, Credential, TokenProvider  # noqa: E402
from .client import AgentClient  # noqa: E402
from .session import SessionContext, SessionLoop  # noqa: E402

__all__ = [
    "AgentClient",
    "CancellationToken",
    "Credential",
    "SessionContext",
    "SessionLoop",
    "TokenProvider",
]
