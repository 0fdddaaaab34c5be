"""Admin REST API client.

Objective:
    Provide a thin wrapper around the ``InvokeCommand`` REST endpoint exposed
    by Exchange Online and Security & Compliance. This module centralizes URL
    construction, authentication headers, paging and error translation.

Responsibilities:
    - Issue authenticated cmdlet invocations (via :class:`requests`).
    - Follow ``@odata.nextLink`` pages and return the concatenated ``value``.
    - Translate "cmdlet not found" and connection failures into
      :class:`src.folder_search.errors.RemoteUnavailable`.

High-level call tree:
    - :meth:`AdminApiClient.invoke`
        - :meth:`AdminApiClient._make_request` (auth + error handling)
            - :meth:`AdminApiClient._raise_for_missing_cmdlet`

Endpoint:
    ``POST {base_url}/adminapi/beta/{organization}/InvokeCommand`` with body
    ``{"CmdletInput": {"CmdletName": ..., "Parameters": {...}}}``.

Error handling:
    - Missing cmdlets and unreachable endpoints raise ``RemoteUnavailable``.
    - Other HTTP errors are logged and raised as ``requests.HTTPError``.
"""

import logging
from typing import Any, Optional

import requests

from .auth import AdminAuthenticator
from .config import Settings
from .errors import RemoteUnavailable

logger = logging.getLogger(__name__)

# PowerShell's CommandNotFoundException message, relayed in REST error bodies.
_CMDLET_NOT_FOUND_MARKERS = ("is not recognized as", "CommandNotFoundException")


class AdminApiClient:
    """
    Client for invoking admin cmdlets over REST.

    One instance talks to one endpoint (Exchange Online or Security &
    Compliance). The instance is the explicit session handle threaded through
    folder enumeration and search job calls.

    Attributes:
        settings: Application settings.
        auth: Admin API authenticator.
        base_url: Endpoint base URL (also the token resource).
    """

    def __init__(
        self,
        settings: Settings,
        auth: AdminAuthenticator,
        base_url: str,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the admin API client.

        Args:
            settings: Application settings.
            auth: Admin API authenticator.
            base_url: Endpoint base URL.
            session: Optional HTTP session (a new one is created when omitted).
        """
        self.settings = settings
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    @property
    def invoke_url(self) -> str:
        """Full ``InvokeCommand`` URL for the configured organization."""
        return f"{self.base_url}/adminapi/beta/{self.settings.organization_name}/InvokeCommand"

    def _headers(self) -> dict[str, str]:
        headers = self.auth.get_auth_headers(self.base_url)
        if self.settings.anchor_mailbox:
            headers["X-AnchorMailbox"] = f"UPN:{self.settings.anchor_mailbox}"
        return headers

    def _make_request(
        self,
        method: str,
        url: str,
        cmdlet: str,
        json_data: Optional[dict] = None,
    ) -> dict:
        """Make an authenticated request to the admin endpoint.

        Args:
            method: HTTP method.
            url: Absolute URL (the invoke URL or a next-page link).
            cmdlet: Cmdlet name, used to report missing capabilities.
            json_data: JSON body data.

        Returns:
            dict: Response JSON data (``{}`` for 204 responses).

        Raises:
            RemoteUnavailable: If the endpoint is unreachable or the cmdlet is
                not available to the caller.
            requests.HTTPError: If the request fails for another reason.
        """
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._headers(),
                json=json_data,
                timeout=self.settings.request_timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise RemoteUnavailable(cmdlet, f"cannot reach {self.base_url}: {e}") from e

        if not response.ok:
            self._raise_for_missing_cmdlet(response, cmdlet)
            logger.error(
                "Admin API error for %s: %s - %s",
                cmdlet,
                response.status_code,
                response.text,
            )
            response.raise_for_status()

        if response.status_code == 204:
            return {}

        return response.json()

    @staticmethod
    def _raise_for_missing_cmdlet(response: requests.Response, cmdlet: str) -> None:
        if response.status_code == 404:
            raise RemoteUnavailable(cmdlet, "endpoint returned 404")

        text = response.text or ""
        if any(marker in text for marker in _CMDLET_NOT_FOUND_MARKERS):
            raise RemoteUnavailable(cmdlet, text.strip()[:200])

    def invoke(self, cmdlet: str, parameters: Optional[dict[str, Any]] = None) -> list[dict]:
        """Invoke a cmdlet and return all result objects.

        Args:
            cmdlet: Cmdlet name, e.g. ``Get-ComplianceSearch``.
            parameters: Cmdlet parameters.

        Returns:
            list[dict]: Result objects across all pages.
        """
        body = {
            "CmdletInput": {
                "CmdletName": cmdlet,
                "Parameters": parameters or {},
            }
        }

        logger.debug("Invoking %s on %s", cmdlet, self.base_url)
        response = self._make_request("POST", self.invoke_url, cmdlet, json_data=body)

        results = list(response.get("value", []))
        next_link = response.get("@odata.nextLink")
        while next_link:
            logger.debug("Fetching next page for %s", cmdlet)
            response = self._make_request("GET", next_link, cmdlet)
            results.extend(response.get("value", []))
            next_link = response.get("@odata.nextLink")

        logger.debug("%s returned %s object(s)", cmdlet, len(results))
        return results
