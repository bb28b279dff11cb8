"""
Authentication against Microsoft Entra ID for the agent console client.

Tokens are acquired silently from the MSAL cache when possible, falling
back to the device-code flow, where the user signs in from a browser
while this process polls for completion.
"""

import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import msal
import structlog

from .config import CliConfig
from .errors import (
    AccountEnumerationError,
    AccountRemovalError,
    DeviceCodeCompletionError,
    DeviceCodeInitError,
    SilentAuthError,
    TokenCacheError,
)

logger = structlog.get_logger()


@dataclass
class Credential:
    """Bearer token and the display name of the account it belongs to."""

    access_token: str
    username: str


class CancellationToken:
    """Lets the host process abort a blocking device-code wait."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class TokenProvider:
    """Acquires and clears access tokens for the interactive user."""

    def __init__(
        self,
        config: CliConfig,
        app: Optional[msal.PublicClientApplication] = None,
    ):
        """
        Initialize the token provider.

        Args:
            config: Resolved client configuration
            app: MSAL application to use (built from config if not provided)
        """
        self.config = config
        self.scopes = config.scopes
        self.cache_path = (
            Path(config.token_cache_path).expanduser()
            if config.token_cache_path
            else None
        )
        self.cache = msal.SerializableTokenCache()
        if app is None:
            self._load_cache()
            app = msal.PublicClientApplication(
                config.client_id,
                authority=config.authority_url,
                token_cache=self.cache,
            )
        self.app = app

    def authenticate(
        self, cancellation: Optional[CancellationToken] = None
    ) -> Credential:
        """
        Return a credential, silently if a cached account allows it.

        Args:
            cancellation: Token that aborts the device-code wait when cancelled

        Returns:
            Credential for the signed-in user

        Raises:
            AccountEnumerationError: If cached accounts cannot be listed
            DeviceCodeInitError: If the device-code flow cannot be started
            DeviceCodeCompletionError: If the user does not complete sign-in
            TokenCacheError: If the token cache file cannot be written
        """
        accounts = self._list_accounts()

        if accounts:
            account = self._select_account(accounts)
            try:
                credential = self._acquire_silent(account)
            except SilentAuthError as e:
                logger.info(
                    "Silent authentication failed, using device code flow",
                    account=account.get("username"),
                    error=str(e),
                )
            else:
                print(f"✓ Authenticated as: {credential.username}\n")
                return credential

        return self._acquire_by_device_code(cancellation or CancellationToken())

    def sign_out(self) -> None:
        """
        Remove every cached account.

        Raises:
            AccountEnumerationError: If cached accounts cannot be listed
            AccountRemovalError: If an account could not be removed
            TokenCacheError: If the token cache file cannot be written
        """
        for account in self._list_accounts():
            try:
                self.app.remove_account(account)
            except Exception as e:
                raise AccountRemovalError(
                    f"failed to remove account: {account.get('username')}: {e}"
                ) from e
            logger.debug("Removed cached account", account=account.get("username"))

        self._save_cache()
        print("✓ Signed out successfully")

    def current_user(self) -> str:
        """Return the display name of the cached account, or "" if there is none."""
        try:
            accounts = self._list_accounts()
        except AccountEnumerationError:
            return ""
        if not accounts:
            return ""
        return self._select_account(accounts).get("username") or ""

    def _list_accounts(self) -> List[Dict[str, Any]]:
        try:
            return list(self.app.get_accounts())
        except Exception as e:
            raise AccountEnumerationError(f"failed to get accounts: {e}") from e

    def _select_account(self, accounts: List[Dict[str, Any]]) -> Dict[str, Any]:
        # MSAL does not guarantee an ordering, so honour an explicit choice first
        preferred = self.config.preferred_account
        if preferred:
            for account in accounts:
                if (account.get("username") or "").lower() == preferred.lower():
                    return account
            logger.warning(
                "Preferred account not found in cache",
                preferred_account=preferred,
                cached_accounts=len(accounts),
            )

        if len(accounts) > 1:
            logger.info(
                "Multiple cached accounts, using the first",
                account=accounts[0].get("username"),
                cached_accounts=len(accounts),
            )
        return accounts[0]

    def _acquire_silent(self, account: Dict[str, Any]) -> Credential:
        try:
            result = self.app.acquire_token_silent(self.scopes, account=account)
        except Exception as e:
            raise SilentAuthError(str(e)) from e

        if not result or "access_token" not in result:
            reason = "no cached token"
            if result:
                reason = result.get("error_description") or result.get("error", reason)
            raise SilentAuthError(reason)

        self._save_cache()
        return Credential(
            access_token=result["access_token"],
            username=account.get("username") or "",
        )

    def _acquire_by_device_code(self, cancellation: CancellationToken) -> Credential:
        print("Authenticating with Microsoft...")

        try:
            flow = self.app.initiate_device_flow(scopes=self.scopes)
        except Exception as e:
            raise DeviceCodeInitError(f"could not start device code flow: {e}") from e
        if "user_code" not in flow:
            raise DeviceCodeInitError(
                "could not start device code flow: "
                + (flow.get("error_description") or flow.get("error") or "no device code")
            )

        print(flow["message"])

        deadline = self._device_code_deadline(flow)
        logger.debug(
            "Waiting for device code sign-in",
            verification_uri=flow.get("verification_uri"),
            seconds_remaining=round(deadline - time.time()),
        )

        def should_stop(_flow: Dict[str, Any]) -> bool:
            return cancellation.cancelled or time.time() >= deadline

        try:
            result = self.app.acquire_token_by_device_flow(
                flow, exit_condition=should_stop
            )
        except Exception as e:
            raise DeviceCodeCompletionError(f"device code sign-in failed: {e}") from e

        if cancellation.cancelled:
            raise DeviceCodeCompletionError("authentication cancelled")
        if not result or "access_token" not in result:
            reason = "device code expired"
            if result:
                reason = result.get("error_description") or result.get("error", reason)
            raise DeviceCodeCompletionError(f"device code sign-in failed: {reason}")

        claims = result.get("id_token_claims") or {}
        username = claims.get("preferred_username") or ""
        self._save_cache()

        print("\n✓ Authentication successful!")
        print(f"Logged in as: {username}\n")
        return Credential(access_token=result["access_token"], username=username)

    def _device_code_deadline(self, flow: Dict[str, Any]) -> float:
        deadline = float(flow.get("expires_at") or time.time() + flow.get("expires_in", 900))
        if self.config.device_code_timeout:
            deadline = min(deadline, time.time() + self.config.device_code_timeout)
        return deadline

    def _load_cache(self) -> None:
        if self.cache_path and self.cache_path.exists():
            self.cache.deserialize(self.cache_path.read_text())
            logger.debug("Loaded token cache", path=str(self.cache_path))

    def _save_cache(self) -> None:
        if not self.cache_path or not self.cache.has_state_changed:
            return
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(self.cache.serialize())
            os.chmod(self.cache_path, 0o600)
        except OSError as e:
            raise TokenCacheError(
                f"failed to save token cache to {self.cache_path}: {e}"
            ) from e
        logger.debug("Saved token cache", path=str(self.cache_path))
