"""Pydantic data models used across the application.

Objective:
    Centralize the strongly-typed structures exchanged with the Exchange
    Online and Security & Compliance admin endpoints:
    - Folder statistics records returned by folder enumeration
    - Folder query ids derived from those records
    - Compliance search and search action records
    - Flattened status records produced by the expanders

Design notes:
    - Remote payloads use PascalCase property names (``FolderPath``,
      ``ContentMatchQuery``). Models declare those as aliases and set
      ``populate_by_name=True`` so they can be built with pythonic names too.
    - Expanded records allow extra fields because the remote service decides
      which statistics it reports.

High-level structure:
    - Enumerations:
        - :class:`FolderLocation`
        - :class:`SearchScope`
    - Folder primitives:
        - :class:`FolderRecord`
        - :class:`FolderQueryId`
    - Search primitives:
        - :class:`ComplianceSearch`
        - :class:`ComplianceSearchAction`
    - Expanded status:
        - :class:`ExpandedStatistic`
        - :class:`ActionResult`
        - :class:`SearchStatusReport`
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FolderLocation(str, Enum):
    """Where a folder lives."""

    MAILBOX = "Mailbox"
    ARCHIVE = "Archive"


class SearchScope(str, Enum):
    """Which parts of a mailbox a search enumerates folders from."""

    MAILBOX = "Mailbox"
    ARCHIVE_ONLY = "ArchiveOnly"
    MAILBOX_AND_ARCHIVE = "MailboxAndArchive"

    @property
    def locations(self) -> list[FolderLocation]:
        """Folder locations enumerated for this scope, in enumeration order."""
        if self is SearchScope.ARCHIVE_ONLY:
            return [FolderLocation.ARCHIVE]
        if self is SearchScope.MAILBOX_AND_ARCHIVE:
            return [FolderLocation.MAILBOX, FolderLocation.ARCHIVE]
        return [FolderLocation.MAILBOX]


class FolderRecord(BaseModel):
    """
    Mailbox folder statistics record.

    This corresponds to one row of ``Get-MailboxFolderStatistics`` /
    ``Get-EXOMailboxFolderStatistics`` output.

    Attributes:
        name: Folder display name.
        folder_path: Folder path, e.g. ``/Inbox/Projects``.
        folder_type: Folder category, e.g. ``Inbox`` or ``User Created``.
        folder_id: Raw base64 folder identifier (may be missing).
        items_in_folder: Number of items in the folder.
        location: Mailbox or archive.
    """

    name: str = Field(default="", alias="Name")
    folder_path: str = Field(default="", alias="FolderPath")
    folder_type: str = Field(default="", alias="FolderType")
    folder_id: Optional[str] = Field(default=None, alias="FolderId")
    items_in_folder: int = Field(default=0, alias="ItemsInFolder")
    location: FolderLocation = Field(default=FolderLocation.MAILBOX, alias="Location")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _default_name_from_path(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("Name") or data.get("name"):
            return data
        path = data.get("FolderPath") or data.get("folder_path") or ""
        if path:
            data = {**data, "Name": path.rstrip("/").rsplit("/", 1)[-1]}
        return data


class FolderQueryId(BaseModel):
    """
    Canonical hex folder id ready for the ``folderid:`` KQL property.

    Attributes:
        query_id: 48-character uppercase hex id.
        folder: Folder record the id was derived from, when known.
    """

    query_id: str
    folder: Optional[FolderRecord] = None

    model_config = ConfigDict(frozen=True)

    @property
    def folder_query(self) -> str:
        """KQL clause selecting this folder."""
        return f"folderid:{self.query_id}"


class ComplianceSearch(BaseModel):
    """
    Compliance search job as returned by ``Get-ComplianceSearch``.

    Attributes:
        name: Search name (also its identity for follow-up calls).
        status: Current job status, e.g. ``NotStarted`` or ``Completed``.
        content_match_query: KQL query submitted with the search.
        exchange_location: Mailboxes targeted by the search.
        items: Number of matching items once the search ran.
        size: Total size of matching items in bytes.
        search_statistics: Raw JSON statistics document.
        success_results: Raw per-location result summary.
        errors: Raw error text reported by the service.
    """

    name: str = Field(alias="Name")
    identity: Optional[str] = Field(default=None, alias="Identity")
    status: str = Field(default="", alias="Status")
    content_match_query: str = Field(default="", alias="ContentMatchQuery")
    exchange_location: list[str] = Field(default_factory=list, alias="ExchangeLocation")
    items: Optional[int] = Field(default=None, alias="Items")
    size: Optional[int] = Field(default=None, alias="Size")
    created_time: Optional[str] = Field(default=None, alias="CreatedTime")
    job_start_time: Optional[str] = Field(default=None, alias="JobStartTime")
    job_end_time: Optional[str] = Field(default=None, alias="JobEndTime")
    search_statistics: Optional[str] = Field(default=None, alias="SearchStatistics")
    success_results: Optional[str] = Field(default=None, alias="SuccessResults")
    errors: Optional[str] = Field(default=None, alias="Errors")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("exchange_location", mode="before")
    @classmethod
    def _listify_location(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class ComplianceSearchAction(BaseModel):
    """
    Compliance search action (preview/export/purge) record.

    Attributes:
        name: Action name, usually ``<search>_Preview`` or ``<search>_Export``.
        search_name: Name of the parent search.
        action: Action kind.
        status: Current action status.
        results: Raw ``"; "``-delimited result text.
        errors: Raw error text reported by the service.
    """

    name: str = Field(alias="Name")
    search_name: str = Field(default="", alias="SearchName")
    action: str = Field(default="", alias="Action")
    status: str = Field(default="", alias="Status")
    results: Optional[str] = Field(default=None, alias="Results")
    errors: Optional[str] = Field(default=None, alias="Errors")

    model_config = ConfigDict(populate_by_name=True)


class ExpandedStatistic(BaseModel):
    """
    One flattened entry of a search statistics document.

    ``binding_section`` tells whether the entry came from the search summary
    (``Search``) or from a per-query breakdown (``Query``). All remote
    fields are kept as extra attributes, including one named ``source``.
    """

    binding_section: str

    model_config = ConfigDict(extra="allow")


class ActionResult(BaseModel):
    """
    Flattened search action result record.

    Field names are derived from the remote text (``Item count`` becomes
    ``ItemCount``) and kept as extra attributes.
    """

    model_config = ConfigDict(extra="allow")

    @property
    def fields(self) -> dict[str, str]:
        """Expanded fields in input order."""
        return dict(self.model_extra or {})


class SearchStatusReport(BaseModel):
    """
    Search record combined with its expanded statistics.

    This is the primary output type printed by the ``status`` CLI command.
    """

    search: ComplianceSearch
    statistics: list[ExpandedStatistic] = Field(default_factory=list)
