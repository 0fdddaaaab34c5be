"""Admin API authentication.

Objective:
    Acquire and cache OAuth2 access tokens for the Exchange Online and
    Security & Compliance admin endpoints, and expose them as ready-to-use
    HTTP headers.

Responsibilities:
    - Manage the MSAL ``PublicClientApplication`` or
      ``ConfidentialClientApplication`` lifecycle.
    - Persist and reload the MSAL token cache to/from disk.
    - Perform interactive device-code authentication when no cached token is
      available (delegated permissions).
    - Perform client credentials authentication for unattended scenarios
      (``Exchange.ManageAsApp`` application permission).

High-level call tree:
    - :class:`AdminAuthenticator`
        - :meth:`AdminAuthenticator.get_auth_headers`
            - :meth:`AdminAuthenticator.get_access_token`
                - :meth:`AdminAuthenticator._get_token_client_credentials`
                - :meth:`AdminAuthenticator._get_token_device_code`
                - :meth:`AdminAuthenticator._get_app`
                    - :meth:`AdminAuthenticator._load_token_cache`
                - :meth:`AdminAuthenticator._save_token_cache`

Operational notes:
    - Tokens are requested per resource (``<resource>/.default``); one MSAL
      application and one token cache serve both admin endpoints.
    - Device-code flow prints its instructions to stdout.
"""

import logging
from pathlib import Path
from typing import Optional

import msal

from .config import Settings

logger = logging.getLogger(__name__)

# Token cache file location
TOKEN_CACHE_FILE = Path.home() / ".folder_search_token_cache.json"


class AdminAuthenticator:
    """
    Handles admin API authentication using MSAL.

    Supports two authentication modes:
    1. Client credentials flow (application permissions) - for unattended scenarios
    2. Device code flow (delegated permissions) - for interactive scenarios

    Attributes:
        settings: Application settings containing Azure AD credentials.
        _app: MSAL public or confidential client application instance.
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the authenticator with settings.

        Args:
            settings: Application settings with Azure AD credentials.
        """
        self.settings = settings
        self._app: Optional[msal.PublicClientApplication | msal.ConfidentialClientApplication] = None
        self._use_client_credentials = bool(settings.use_client_credentials)

    @staticmethod
    def scopes_for(resource: str) -> list[str]:
        """Return the ``.default`` scope list for a resource base URL."""
        return [f"{resource.rstrip('/')}/.default"]

    def _load_token_cache(self) -> msal.SerializableTokenCache:
        """
        Load token cache from file.

        If the file cannot be read or is invalid, the authenticator falls back
        to an empty cache.

        Returns:
            msal.SerializableTokenCache: Token cache instance.
        """
        cache = msal.SerializableTokenCache()

        if TOKEN_CACHE_FILE.exists():
            try:
                cache.deserialize(TOKEN_CACHE_FILE.read_text())
                logger.debug("Loaded token cache from file")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load token cache: {e}")
        else:
            logger.debug("No token cache file found; starting with empty cache")
        return cache

    def _save_token_cache(self, cache: msal.SerializableTokenCache) -> None:
        """
        Save token cache to file when MSAL reports a change.

        Args:
            cache: Token cache to save.
        """
        if cache.has_state_changed:
            try:
                TOKEN_CACHE_FILE.write_text(cache.serialize())
                logger.debug("Saved token cache to file")
            except OSError as e:
                logger.warning(f"Failed to save token cache: {e}")

    def _get_app(self) -> msal.PublicClientApplication | msal.ConfidentialClientApplication:
        """
        Get or create the MSAL client application.

        Returns:
            msal.PublicClientApplication | msal.ConfidentialClientApplication: MSAL app instance.

        Raises:
            RuntimeError: If client credentials are requested without a secret.
        """
        if self._app is None:
            authority = f"https://login.microsoftonline.com/{self.settings.azure_tenant_id}"

            if self._use_client_credentials:
                if not self.settings.azure_client_secret:
                    raise RuntimeError(
                        "use_client_credentials=true requires AZURE_CLIENT_SECRET to be set"
                    )
                self._app = msal.ConfidentialClientApplication(
                    client_id=self.settings.azure_client_id,
                    client_credential=self.settings.azure_client_secret,
                    authority=authority,
                )
                logger.debug("Created MSAL confidential client application (client credentials flow)")
            else:
                self._app = msal.PublicClientApplication(
                    client_id=self.settings.azure_client_id,
                    authority=authority,
                    token_cache=self._load_token_cache(),
                )
                logger.debug("Created MSAL public client application (device code flow)")
        return self._app

    def _select_account(self, accounts: list[dict]) -> Optional[dict]:
        """Select a cached MSAL account.

        When ``settings.admin_account_username`` is set, the matching account
        is selected by username (case-insensitive). Otherwise the first cached
        account is used.

        Args:
            accounts: List of cached MSAL accounts.

        Returns:
            Optional[dict]: Selected account or None when no accounts exist.

        Raises:
            ValueError: If a preferred username is configured but not found.
        """
        if not accounts:
            return None

        preferred = (self.settings.admin_account_username or "").strip()
        if not preferred:
            return accounts[0]

        preferred_lower = preferred.lower()
        for account in accounts:
            username = str(account.get("username", "")).strip().lower()
            if username and username == preferred_lower:
                return account

        available = [a.get("username") for a in accounts if a.get("username")]
        raise ValueError(
            "Configured ADMIN_ACCOUNT_USERNAME was not found in token cache. "
            f"preferred={preferred!r} available={available!r}"
        )

    def _get_token_client_credentials(self, scopes: list[str]) -> str:
        """
        Acquire an access token using the client credentials flow.

        Args:
            scopes: Scopes to request.

        Returns:
            str: Valid access token.

        Raises:
            RuntimeError: If token acquisition fails.
        """
        app = self._get_app()
        logger.debug("Acquiring token using client credentials flow...")

        result = app.acquire_token_for_client(scopes=scopes)

        if "access_token" in result:
            return result["access_token"]

        error_description = result.get("error_description", "Unknown error")
        error = result.get("error", "unknown")
        logger.error(f"Failed to acquire token: {error} - {error_description}")
        raise RuntimeError(f"Failed to acquire access token: {error_description}")

    def _get_token_device_code(self, scopes: list[str]) -> str:
        """
        Acquire an access token silently or via the device code flow.

        Args:
            scopes: Scopes to request.

        Returns:
            str: Valid access token.

        Raises:
            RuntimeError: If token acquisition fails.
        """
        app = self._get_app()

        accounts = app.get_accounts()
        if accounts:
            selected = self._select_account(accounts)
            result = app.acquire_token_silent(scopes=scopes, account=selected)
            if result and "access_token" in result:
                logger.debug("Acquired token from cache for %s", selected.get("username"))
                self._save_token_cache(app.token_cache)
                return result["access_token"]
            logger.debug(
                "Silent acquisition failed for account %s",
                selected.get("username"),
            )

        flow = app.initiate_device_flow(scopes=scopes)
        if "user_code" not in flow:
            error = flow.get("error_description", "Unknown error")
            raise RuntimeError(f"Failed to initiate device flow: {error}")

        print("\n" + "=" * 60)
        print("AUTHENTICATION REQUIRED")
        print("=" * 60)
        print(f"\n{flow['message']}\n")
        print("=" * 60 + "\n")

        result = app.acquire_token_by_device_flow(flow)

        if "access_token" in result:
            logger.debug("Successfully authenticated")
            self._save_token_cache(app.token_cache)
            return result["access_token"]

        error_description = result.get("error_description", "Unknown error")
        error = result.get("error", "unknown")
        logger.error(f"Failed to acquire token: {error} - {error_description}")
        raise RuntimeError(f"Failed to acquire access token: {error_description}")

    def get_access_token(self, resource: str) -> str:
        """
        Acquire an access token for an admin resource.

        Args:
            resource: Resource base URL, e.g. ``https://outlook.office365.com``.

        Returns:
            str: Valid access token.

        Raises:
            RuntimeError: If token acquisition fails.
        """
        scopes = self.scopes_for(resource)
        if self._use_client_credentials:
            return self._get_token_client_credentials(scopes)
        return self._get_token_device_code(scopes)

    def get_auth_headers(self, resource: str) -> dict[str, str]:
        """
        Get HTTP headers with authorization for admin API requests.

        Args:
            resource: Resource base URL.

        Returns:
            dict[str, str]: Headers dictionary with Bearer token.
        """
        token = self.get_access_token(resource)
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def logout(self) -> None:
        """Remove the persisted token cache and reset the MSAL application."""
        if TOKEN_CACHE_FILE.exists():
            TOKEN_CACHE_FILE.unlink()
            logger.debug("Cleared token cache")
        self._app = None
