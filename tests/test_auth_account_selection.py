from unittest.mock import MagicMock

import pytest

from src.folder_search.auth import AdminAuthenticator


def test_select_account_defaults_to_first_when_no_preferred_username() -> None:
    """Return the first cached account when no preference is configured."""

    settings = MagicMock()
    settings.admin_account_username = None

    auth = AdminAuthenticator(settings)

    accounts = [
        {"username": "first@contoso.com"},
        {"username": "second@contoso.com"},
    ]

    selected = auth._select_account(accounts)
    assert selected == accounts[0]


def test_select_account_matches_preferred_username_case_insensitive() -> None:
    """Select the cached account matching the preferred username."""

    settings = MagicMock()
    settings.admin_account_username = "Second@Contoso.com"

    auth = AdminAuthenticator(settings)

    accounts = [
        {"username": "first@contoso.com"},
        {"username": "second@contoso.com"},
    ]

    selected = auth._select_account(accounts)
    assert selected == accounts[1]


def test_select_account_raises_when_preferred_username_missing() -> None:
    """Raise a clear error when the preferred username is not in cache."""

    settings = MagicMock()
    settings.admin_account_username = "missing@contoso.com"

    auth = AdminAuthenticator(settings)

    with pytest.raises(ValueError, match="ADMIN_ACCOUNT_USERNAME"):
        auth._select_account([{"username": "first@contoso.com"}])


def test_scopes_for_resource() -> None:
    """Each admin resource is requested with its .default scope."""

    assert AdminAuthenticator.scopes_for("https://outlook.office365.com/") == [
        "https://outlook.office365.com/.default"
    ]


def test_client_credentials_requests_resource_scope() -> None:
    """Client credentials tokens are requested for the resource's .default scope."""

    settings = MagicMock()
    settings.use_client_credentials = True

    auth = AdminAuthenticator(settings)
    app = MagicMock()
    app.acquire_token_for_client.return_value = {"access_token": "token-123"}
    auth._app = app

    headers = auth.get_auth_headers("https://ps.compliance.protection.outlook.com")

    app.acquire_token_for_client.assert_called_once_with(
        scopes=["https://ps.compliance.protection.outlook.com/.default"]
    )
    assert headers["Authorization"] == "Bearer token-123"


def test_client_credentials_failure_raises() -> None:
    """A failed token request surfaces the MSAL error description."""

    settings = MagicMock()
    settings.use_client_credentials = True

    auth = AdminAuthenticator(settings)
    app = MagicMock()
    app.acquire_token_for_client.return_value = {
        "error": "invalid_client",
        "error_description": "bad secret",
    }
    auth._app = app

    with pytest.raises(RuntimeError, match="bad secret"):
        auth.get_access_token("https://outlook.office365.com")


def test_device_code_uses_cached_account_silently() -> None:
    """A cached account avoids the device-code prompt."""

    settings = MagicMock()
    settings.use_client_credentials = False
    settings.admin_account_username = None

    auth = AdminAuthenticator(settings)
    auth._save_token_cache = MagicMock()
    app = MagicMock()
    app.get_accounts.return_value = [{"username": "admin@contoso.com"}]
    app.acquire_token_silent.return_value = {"access_token": "cached"}
    auth._app = app

    assert auth.get_access_token("https://outlook.office365.com") == "cached"
    app.initiate_device_flow.assert_not_called()
