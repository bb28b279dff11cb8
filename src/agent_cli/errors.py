"""
Exception hierarchy for the agent console client.

Authentication errors abort startup. Dispatch errors are raised by
``AgentClient`` and reported by the session loop, which keeps running.
"""

from typing import Optional


class AgentCliError(Exception):
    """Base class for all errors raised by the console client."""


class ConfigError(AgentCliError):
    """The configuration file exists but could not be read or parsed."""


class AuthError(AgentCliError):
    """Base class for identity provider failures."""


class AccountEnumerationError(AuthError):
    """Cached accounts could not be listed."""


class SilentAuthError(AuthError):
    """Silent token acquisition failed; callers fall back to the device flow."""


class DeviceCodeInitError(AuthError):
    """The identity provider refused to start a device-code flow."""


class DeviceCodeCompletionError(AuthError):
    """The device-code flow was denied, expired or cancelled."""


class AccountRemovalError(AuthError):
    """A cached account could not be removed during sign-out."""


class TokenCacheError(AuthError):
    """The token cache file could not be written."""


class DispatchError(AgentCliError):
    """Base class for failures of a single agent service call."""


class TransportError(DispatchError):
    """The HTTP exchange could not be established or completed."""

    def __init__(self, message: str, timeout: bool = False):
        super().__init__(message)
        self.timeout = timeout


class APIError(DispatchError):
    """The agent service answered with a status code of 400 or above."""

    def __init__(self, status: int, message: str, error: Optional[str] = None):
        super().__init__(f"API error ({status}): {message}")
        self.status = status
        self.message = message
        self.error = error


class DecodeError(DispatchError):
    """A successful response body did not match the expected shape."""


class UnknownCommand(AgentCliError):
    """The command marker was followed by a name not in the command table."""

    def __init__(self, name: str):
        super().__init__(f"Unknown command: {name}")
        self.name = name
