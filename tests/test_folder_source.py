from unittest.mock import MagicMock

import pytest

from src.folder_search.errors import InvalidConfiguration
from src.folder_search.folder_source import (
    ExoFolderStatisticsSource,
    LegacyFolderStatisticsSource,
    select_folder_source,
)
from src.folder_search.models import FolderLocation

ROWS = [
    {
        "Name": "Inbox",
        "FolderPath": "/Inbox",
        "FolderType": "Inbox",
        "FolderId": "LgAAAABXV5oAt1XLR5mKDMdf/8tYAQA8g0kJjzXVTZlomtyxaMeJAAsEdvKpAAAB",
        "ItemsInFolder": 42,
    },
    {"Name": "Top of Information Store", "FolderPath": "/Top of Information Store", "FolderId": None},
]


def test_legacy_source_lists_mailbox_folders() -> None:
    """Primary mailbox folders are annotated with the Mailbox location."""

    client = MagicMock()
    client.invoke.return_value = ROWS

    folders = LegacyFolderStatisticsSource(client).list_folders("user@contoso.com")

    client.invoke.assert_called_once_with(
        "Get-MailboxFolderStatistics", {"Identity": "user@contoso.com"}
    )
    assert [f.folder_path for f in folders] == ["/Inbox", "/Top of Information Store"]
    assert all(f.location is FolderLocation.MAILBOX for f in folders)
    assert folders[0].items_in_folder == 42
    assert folders[1].folder_id is None


def test_legacy_source_lists_archive_folders() -> None:
    """The archive switch is passed and records are annotated as Archive."""

    client = MagicMock()
    client.invoke.return_value = ROWS[:1]

    folders = LegacyFolderStatisticsSource(client).list_folders("user@contoso.com", archive=True)

    args = client.invoke.call_args.args
    assert args[1] == {"Identity": "user@contoso.com", "Archive": True}
    assert folders[0].location is FolderLocation.ARCHIVE


def test_exo_source_requests_folder_properties() -> None:
    """The EXO cmdlet is asked for the properties the workflow needs."""

    client = MagicMock()
    client.invoke.return_value = []

    ExoFolderStatisticsSource(client).list_folders("user@contoso.com")

    cmdlet, parameters = client.invoke.call_args.args
    assert cmdlet == "Get-EXOMailboxFolderStatistics"
    assert "FolderId" in parameters["Properties"]


@pytest.mark.parametrize(
    "cmdlet, expected",
    [
        ("Get-EXOMailboxFolderStatistics", ExoFolderStatisticsSource),
        ("get-mailboxfolderstatistics", LegacyFolderStatisticsSource),
    ],
)
def test_select_folder_source(cmdlet, expected) -> None:
    """The strategy is picked from settings, case-insensitively."""

    settings = MagicMock()
    settings.folder_statistics_cmdlet = cmdlet
    client = MagicMock()

    source = select_folder_source(settings, client)

    assert isinstance(source, expected)
    assert source.client is client
    client.invoke.assert_not_called()


def test_select_folder_source_unknown_cmdlet_raises() -> None:
    """An unsupported cmdlet is a configuration error and calls nothing."""

    settings = MagicMock()
    settings.folder_statistics_cmdlet = "Get-Something"
    client = MagicMock()

    with pytest.raises(InvalidConfiguration, match="Get-Something"):
        select_folder_source(settings, client)

    client.invoke.assert_not_called()
