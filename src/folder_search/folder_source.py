"""Folder enumeration strategies.

Objective:
    Wrap the remote "list folder statistics" capability behind one small
    interface so the orchestrator does not care which cmdlet backs it.

Strategies:
    - :class:`ExoFolderStatisticsSource` uses ``Get-EXOMailboxFolderStatistics``.
    - :class:`LegacyFolderStatisticsSource` uses ``Get-MailboxFolderStatistics``.

The strategy is chosen once, at start-up, by :func:`select_folder_source`
and then injected into :class:`src.folder_search.orchestrator.SearchOrchestrator`.
"""

import logging

from .admin_client import AdminApiClient
from .config import (
    EXO_FOLDER_STATISTICS_CMDLET,
    LEGACY_FOLDER_STATISTICS_CMDLET,
    Settings,
)
from .errors import InvalidConfiguration
from .models import FolderLocation, FolderRecord

logger = logging.getLogger(__name__)


class FolderSource:
    """
    Base folder enumeration strategy.

    Subclasses set :attr:`cmdlet`. Records are returned read-only and annotated
    with the location they were enumerated from.

    Attributes:
        client: Exchange Online admin API client.
    """

    cmdlet: str = ""

    def __init__(self, client: AdminApiClient) -> None:
        self.client = client

    def _parameters(self, mailbox: str, archive: bool) -> dict:
        parameters: dict = {"Identity": mailbox}
        if archive:
            parameters["Archive"] = True
        return parameters

    def list_folders(self, mailbox: str, archive: bool = False) -> list[FolderRecord]:
        """List folder statistics for a mailbox or its archive.

        Args:
            mailbox: Mailbox address.
            archive: List the archive mailbox instead of the primary mailbox.

        Returns:
            list[FolderRecord]: Folder records annotated with their location.
        """
        location = FolderLocation.ARCHIVE if archive else FolderLocation.MAILBOX
        rows = self.client.invoke(self.cmdlet, self._parameters(mailbox, archive))

        folders = []
        for row in rows:
            folder = FolderRecord.model_validate({**row, "Location": location})
            folders.append(folder)

        logger.info(
            "Enumerated %s %s folder(s) for %s via %s",
            len(folders),
            location.value.lower(),
            mailbox,
            self.cmdlet,
        )
        return folders


class ExoFolderStatisticsSource(FolderSource):
    """Folder enumeration through the REST-native EXO cmdlet."""

    cmdlet = EXO_FOLDER_STATISTICS_CMDLET

    def _parameters(self, mailbox: str, archive: bool) -> dict:
        parameters = super()._parameters(mailbox, archive)
        # The EXO cmdlet returns a minimal property set unless asked.
        parameters["Properties"] = ["Name", "FolderPath", "FolderType", "FolderId", "ItemsInFolder"]
        return parameters


class LegacyFolderStatisticsSource(FolderSource):
    """Folder enumeration through the classic remote PowerShell cmdlet."""

    cmdlet = LEGACY_FOLDER_STATISTICS_CMDLET


FOLDER_SOURCES = {
    EXO_FOLDER_STATISTICS_CMDLET.lower(): ExoFolderStatisticsSource,
    LEGACY_FOLDER_STATISTICS_CMDLET.lower(): LegacyFolderStatisticsSource,
}


def select_folder_source(settings: Settings, client: AdminApiClient) -> FolderSource:
    """Pick the folder enumeration strategy from settings.

    Args:
        settings: Application settings (``folder_statistics_cmdlet``).
        client: Exchange Online admin API client.

    Returns:
        FolderSource: Strategy bound to ``client``.

    Raises:
        InvalidConfiguration: If the configured cmdlet has no strategy.
    """
    cmdlet = (settings.folder_statistics_cmdlet or "").strip()
    source_cls = FOLDER_SOURCES.get(cmdlet.lower())
    if source_cls is None:
        raise InvalidConfiguration(
            f"Unsupported FOLDER_STATISTICS_CMDLET {cmdlet or '<unset>'!r}; "
            f"use {EXO_FOLDER_STATISTICS_CMDLET} or {LEGACY_FOLDER_STATISTICS_CMDLET}"
        )

    logger.debug("Using %s for folder enumeration", source_cls.cmdlet)
    return source_cls(client)
