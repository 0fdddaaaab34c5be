"""Application configuration and settings.

Objective:
    Provide a single source of truth for runtime configuration used across the
    application (MSAL auth, admin endpoints, folder enumeration strategy and
    search job behavior).

Responsibilities:
    - Load environment-driven settings via :class:`Settings` (Pydantic
      BaseSettings).
    - Name the folder statistics cmdlets the enumeration strategies map to.

High-level call tree:
    - :func:`get_settings` -> returns :class:`Settings`
    - :class:`Settings`
        - :attr:`Settings.organization_name`

Operational notes:
    - ``Settings`` loads from ``.env`` by default via ``pydantic-settings``.
    - Most modules accept a ``Settings`` object explicitly to enable testing;
      the orchestrator falls back to :func:`get_settings` when not provided.
"""

from typing import Optional
import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

EXO_FOLDER_STATISTICS_CMDLET = "Get-EXOMailboxFolderStatistics"
LEGACY_FOLDER_STATISTICS_CMDLET = "Get-MailboxFolderStatistics"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The settings model is intentionally flat and human-editable via `.env`.
    Most fields map directly to environment variables.

    Attributes:
        azure_client_id: Azure AD application client ID.
        azure_client_secret: Azure AD application client secret.
        azure_tenant_id: Azure AD tenant ID.
        organization: Tenant domain used in admin API URLs.
        exchange_admin_url: Exchange Online admin endpoint base URL.
        compliance_admin_url: Security & Compliance admin endpoint base URL.
        folder_statistics_cmdlet: Cmdlet used to enumerate folders.
        search_name_prefix: Prefix for generated search names.
        log_level: Logging level.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Azure AD Configuration
    azure_client_id: str = Field(..., description="Azure AD application client ID")
    azure_client_secret: Optional[str] = Field(
        default=None, description="Azure AD application client secret (for client credentials flow)"
    )
    azure_tenant_id: str = Field(
        default="organizations", description="Azure AD tenant ID or domain"
    )

    admin_account_username: Optional[str] = Field(
        default=None,
        description=(
            "Preferred admin account username to select from the MSAL token cache. "
            "If omitted, the first cached account is used."
        ),
    )

    use_client_credentials: bool = Field(
        default=False,
        description=(
            "Use client credentials flow instead of device code flow. "
            "Requires an app registration granted Exchange.ManageAsApp."
        ),
    )

    # Admin endpoints
    organization: Optional[str] = Field(
        default=None,
        description=(
            "Tenant domain (e.g. contoso.onmicrosoft.com) used in admin API URLs. "
            "Falls back to AZURE_TENANT_ID."
        ),
    )
    exchange_admin_url: str = Field(
        default="https://outlook.office365.com",
        description="Exchange Online admin API base URL",
    )
    compliance_admin_url: str = Field(
        default="https://ps.compliance.protection.outlook.com",
        description="Security & Compliance admin API base URL",
    )
    anchor_mailbox: Optional[str] = Field(
        default=None,
        description="UPN sent as X-AnchorMailbox to route admin API requests",
    )
    request_timeout: int = Field(
        default=30, ge=1, description="HTTP request timeout in seconds"
    )

    # Folder enumeration
    folder_statistics_cmdlet: str = Field(
        default=EXO_FOLDER_STATISTICS_CMDLET,
        description=(
            "Cmdlet used to enumerate mailbox folders: "
            f"{EXO_FOLDER_STATISTICS_CMDLET} or {LEGACY_FOLDER_STATISTICS_CMDLET}"
        ),
    )

    # Search jobs
    search_name_prefix: str = Field(
        default="PSSearch", description="Prefix for generated search names"
    )
    poll_interval_seconds: float = Field(
        default=10.0, gt=0, description="Seconds between search status polls"
    )
    poll_timeout_seconds: float = Field(
        default=600.0, gt=0, description="Maximum seconds to wait for a search"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def organization_name(self) -> str:
        """
        Tenant identifier used in admin API URLs.

        Returns:
            str: Configured organization, or the tenant ID when unset.
        """
        return (self.organization or self.azure_tenant_id).strip()


def get_settings() -> Settings:
    """
    Load and return application settings.

    This helper is a convenience for production code. For tests, you typically
    construct a :class:`Settings` instance directly or pass a mocked settings
    object.

    Returns:
        Settings: Application settings instance.

    Raises:
        ValidationError: If required environment variables are missing.
    """
    return Settings()
