"""Compliance search job client.

Objective:
    Create, start and read compliance searches (and their actions) through
    the Security & Compliance admin endpoint.

Cmdlets used:
    - ``New-ComplianceSearch`` (Name, ExchangeLocation, ContentMatchQuery)
    - ``Start-ComplianceSearch`` (Identity)
    - ``Get-ComplianceSearch`` (Identity)
    - ``Get-ComplianceSearchAction`` (Identity, Details)

Remote failures propagate unchanged; nothing here retries.
"""

import logging

from .admin_client import AdminApiClient
from .errors import RemoteUnavailable
from .models import ComplianceSearch, ComplianceSearchAction

logger = logging.getLogger(__name__)


class SearchJobClient:
    """
    Client for compliance search jobs.

    Attributes:
        client: Security & Compliance admin API client.
    """

    def __init__(self, client: AdminApiClient) -> None:
        self.client = client

    def _single(self, cmdlet: str, identity: str, rows: list[dict]) -> dict:
        if not rows:
            raise RemoteUnavailable(cmdlet, f"no object returned for {identity!r}")
        return rows[0]

    def create_search(self, name: str, mailbox: str, query: str) -> ComplianceSearch:
        """Create a compliance search targeting one mailbox.

        Args:
            name: Search name.
            mailbox: Mailbox address to search.
            query: KQL content match query.

        Returns:
            ComplianceSearch: Created search record.
        """
        cmdlet = "New-ComplianceSearch"
        rows = self.client.invoke(
            cmdlet,
            {
                "Name": name,
                "ExchangeLocation": [mailbox],
                "ContentMatchQuery": query,
            },
        )
        logger.info("Created compliance search %s", name)
        if not rows:
            return ComplianceSearch(name=name, content_match_query=query, exchange_location=[mailbox])
        return ComplianceSearch.model_validate(rows[0])

    def start_search(self, name: str) -> None:
        """Start a previously created compliance search."""
        self.client.invoke("Start-ComplianceSearch", {"Identity": name})
        logger.info("Started compliance search %s", name)

    def get_search(self, name: str) -> ComplianceSearch:
        """Fetch the current record of a compliance search.

        Raises:
            RemoteUnavailable: If the service returns no search for ``name``.
        """
        cmdlet = "Get-ComplianceSearch"
        rows = self.client.invoke(cmdlet, {"Identity": name})
        return ComplianceSearch.model_validate(self._single(cmdlet, name, rows))

    def get_search_action(self, identity: str) -> ComplianceSearchAction:
        """Fetch a compliance search action with its detailed results.

        Args:
            identity: Action identity, e.g. ``<search>_Preview``.

        Raises:
            RemoteUnavailable: If the service returns no action for ``identity``.
        """
        cmdlet = "Get-ComplianceSearchAction"
        rows = self.client.invoke(cmdlet, {"Identity": identity, "Details": True})
        return ComplianceSearchAction.model_validate(self._single(cmdlet, identity, rows))
