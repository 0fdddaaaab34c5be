"""Workflow orchestrator.

Objective:
    Coordinate the folder-scoped compliance search workflow:
    1) Enumerate mailbox and/or archive folders
    2) Narrow them by name, predicate, or a selection step
    3) Transcode folder ids and build the ``folderid:`` query
    4) Create the compliance search, start it, and return its record
    5) Report, poll and expand search status afterwards

Responsibilities:
    - Compose the core components (folder source, transcoder, query builder,
      search job client, expanders).
    - Provide an imperative API that can be called from the CLI or scripts.

High-level call tree:
    - :class:`SearchOrchestrator`
        - :meth:`SearchOrchestrator.run_search`
            - :func:`resolve_scope`
            - :meth:`SearchOrchestrator.build_query`
                - :meth:`SearchOrchestrator.collect_folders`
                    - :meth:`FolderSource.list_folders`
                - :meth:`SearchOrchestrator.select_folders`
                - :func:`transcode_folders`
                - :func:`build_folder_query`
            - :meth:`SearchJobClient.create_search`
            - :meth:`SearchJobClient.start_search`
            - :meth:`SearchJobClient.get_search`
        - :meth:`SearchOrchestrator.get_search_status`
        - :meth:`SearchOrchestrator.wait_for_search`
        - :meth:`SearchOrchestrator.get_action_results`

Operational notes:
    - Remote calls are made strictly in sequence and never retried.
    - Anything that fails before ``create_search`` leaves no job behind.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional, Sequence

from .admin_client import AdminApiClient
from .auth import AdminAuthenticator
from .config import Settings, get_settings
from .errors import InvalidConfiguration
from .expanders import expand_action_results, expand_search_statistics
from .folder_ids import transcode_folders
from .folder_source import FolderSource, select_folder_source
from .models import (
    ActionResult,
    ComplianceSearch,
    FolderLocation,
    FolderQueryId,
    FolderRecord,
    SearchScope,
    SearchStatusReport,
)
from .query_builder import build_folder_query
from .search_client import SearchJobClient

logger = logging.getLogger(__name__)

FolderFilter = Callable[[FolderRecord], bool]
FolderSelector = Callable[[list[FolderRecord]], list[FolderRecord]]

TERMINAL_STATUSES = frozenset({"Completed", "Stopped", "PartiallySucceeded", "Failed"})


def resolve_scope(archive_only: bool = False, include_archive: bool = False) -> SearchScope:
    """Map the archive switches to a search scope.

    Raises:
        InvalidConfiguration: If both switches are set.
    """
    if archive_only and include_archive:
        raise InvalidConfiguration(
            "archive_only and include_archive are mutually exclusive"
        )
    if archive_only:
        return SearchScope.ARCHIVE_ONLY
    if include_archive:
        return SearchScope.MAILBOX_AND_ARCHIVE
    return SearchScope.MAILBOX


def folder_name_filter(fragments: Sequence[str]) -> FolderFilter:
    """Build a predicate matching folders whose name contains any fragment.

    Matching is case-insensitive. Blank fragments are ignored.
    """
    lowered = [f.strip().lower() for f in fragments if f and f.strip()]

    def _matches(folder: FolderRecord) -> bool:
        name = folder.name.lower()
        return any(fragment in name for fragment in lowered)

    return _matches


class SearchOrchestrator:
    """
    Orchestrates folder-scoped compliance searches.

    This class is intentionally "glue" code: it connects the folder source,
    the query construction helpers and the search job client without
    embedding their rules.

    Attributes:
        settings: Application settings.
        folder_source: Folder enumeration strategy.
        search_client: Compliance search job client.
        clock: Callable returning the current time (used for default names).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        folder_source: Optional[FolderSource] = None,
        search_client: Optional[SearchJobClient] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize orchestrator with all components.

        Components not passed in are built from settings. The folder source
        strategy is selected here, once.

        Args:
            settings: Application settings (loads from env if None).
            folder_source: Folder enumeration strategy.
            search_client: Compliance search job client.
            clock: Current time provider.
        """
        self.settings = settings or get_settings()
        self.clock = clock

        if folder_source is None or search_client is None:
            auth = AdminAuthenticator(self.settings)
            if folder_source is None:
                exchange = AdminApiClient(self.settings, auth, self.settings.exchange_admin_url)
                folder_source = select_folder_source(self.settings, exchange)
            if search_client is None:
                compliance = AdminApiClient(self.settings, auth, self.settings.compliance_admin_url)
                search_client = SearchJobClient(compliance)

        self.folder_source = folder_source
        self.search_client = search_client

    def default_search_name(self, mailbox: str) -> str:
        """Generate a search name from the mailbox and the current time.

        Names are not checked for uniqueness against existing searches.
        """
        timestamp = self.clock().strftime("%Y%m%d-%H%M%S")
        return f"{self.settings.search_name_prefix} {mailbox} {timestamp}"

    def collect_folders(self, mailbox: str, scope: SearchScope) -> list[FolderRecord]:
        """Enumerate folders for every location covered by ``scope``."""
        folders: list[FolderRecord] = []
        for location in scope.locations:
            archive = location is FolderLocation.ARCHIVE
            folders.extend(self.folder_source.list_folders(mailbox, archive=archive))
        return folders

    def select_folders(
        self,
        folders: list[FolderRecord],
        folder_names: Optional[Sequence[str]] = None,
        folder_filter: Optional[FolderFilter] = None,
        selector: Optional[FolderSelector] = None,
    ) -> list[FolderRecord]:
        """Narrow enumerated folders to the ones to search.

        When a ``selector`` is given it decides alone; otherwise folders are
        narrowed by ``folder_filter`` and by ``folder_names`` fragments.

        Args:
            folders: Enumerated folders.
            folder_names: Name fragments; a folder matching any one is kept.
            folder_filter: Extra predicate over folder records.
            selector: Selection step returning the chosen subset.

        Returns:
            list[FolderRecord]: Selected folders.
        """
        if selector is not None:
            selected = list(selector(list(folders)))
            logger.info("Selection step chose %s of %s folder(s)", len(selected), len(folders))
            return selected

        selected = list(folders)
        if folder_filter is not None:
            selected = [f for f in selected if folder_filter(f)]
        if folder_names:
            name_filter = folder_name_filter(folder_names)
            selected = [f for f in selected if name_filter(f)]

        logger.info("Selected %s of %s folder(s)", len(selected), len(folders))
        return selected

    def build_query(
        self,
        mailbox: str,
        archive_only: bool = False,
        include_archive: bool = False,
        folder_names: Optional[Sequence[str]] = None,
        folder_filter: Optional[FolderFilter] = None,
        selector: Optional[FolderSelector] = None,
    ) -> tuple[str, list[FolderQueryId]]:
        """Build the folder query for a mailbox without creating a search.

        Returns:
            tuple[str, list[FolderQueryId]]: The query and the folder ids in it.

        Raises:
            InvalidConfiguration: If both archive switches are set.
            MalformedIdentifier: If a folder id cannot be transcoded to 48 hex digits.
        """
        scope = resolve_scope(archive_only, include_archive)

        folders = self.collect_folders(mailbox, scope)
        selected = self.select_folders(
            folders,
            folder_names=folder_names,
            folder_filter=folder_filter,
            selector=selector,
        )

        folder_query_ids = transcode_folders(f for f in selected if f.folder_id)
        query = build_folder_query(q.query_id for q in folder_query_ids)
        return query, folder_query_ids

    def run_search(
        self,
        mailbox: str,
        name: Optional[str] = None,
        archive_only: bool = False,
        include_archive: bool = False,
        folder_names: Optional[Sequence[str]] = None,
        folder_filter: Optional[FolderFilter] = None,
        selector: Optional[FolderSelector] = None,
        allow_unrestricted: bool = False,
    ) -> ComplianceSearch:
        """Create and start a folder-scoped compliance search.

        Empty selections:
            An empty query searches the whole mailbox. That only happens when
            ``allow_unrestricted=True``; otherwise an empty selection fails.

        Args:
            mailbox: Mailbox address to search.
            name: Search name (generated when omitted).
            archive_only: Enumerate only archive folders.
            include_archive: Enumerate mailbox and archive folders.
            folder_names: Folder name fragments to keep.
            folder_filter: Extra predicate over folder records.
            selector: Selection step returning the chosen subset.
            allow_unrestricted: Submit an unrestricted search when no folder
                is selected.

        Returns:
            ComplianceSearch: Current record of the started search.

        Raises:
            InvalidConfiguration: On conflicting switches or an empty selection.
        """
        resolve_scope(archive_only, include_archive)
        search_name = name or self.default_search_name(mailbox)

        logger.info("Building folder query for %s", mailbox)
        query, folder_query_ids = self.build_query(
            mailbox,
            archive_only=archive_only,
            include_archive=include_archive,
            folder_names=folder_names,
            folder_filter=folder_filter,
            selector=selector,
        )

        if not folder_query_ids and not allow_unrestricted:
            raise InvalidConfiguration(
                f"No folders selected for {mailbox}; refusing to submit an unrestricted search"
            )
        if not folder_query_ids:
            logger.warning("No folders selected; searching the whole mailbox %s", mailbox)

        logger.info(
            "Submitting search %s with %s folder clause(s)",
            search_name,
            len(folder_query_ids),
        )
        self.search_client.create_search(search_name, mailbox, query)
        self.search_client.start_search(search_name)
        return self.search_client.get_search(search_name)

    def get_search_status(self, name: str) -> SearchStatusReport:
        """Fetch a search and expand its statistics when present."""
        search = self.search_client.get_search(name)
        statistics = []
        if search.search_statistics:
            statistics = expand_search_statistics(search.search_statistics)
        return SearchStatusReport(search=search, statistics=statistics)

    def wait_for_search(
        self,
        name: str,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> ComplianceSearch:
        """Poll a search until it reaches a terminal status.

        Args:
            name: Search name.
            poll_interval: Seconds between polls (settings default if None).
            timeout: Maximum seconds to wait (settings default if None).

        Returns:
            ComplianceSearch: Record in its terminal status.

        Raises:
            TimeoutError: If the search is still running after ``timeout``.
        """
        interval = self.settings.poll_interval_seconds if poll_interval is None else poll_interval
        limit = self.settings.poll_timeout_seconds if timeout is None else timeout
        deadline = time.monotonic() + limit

        while True:
            search = self.search_client.get_search(name)
            if search.status in TERMINAL_STATUSES:
                logger.info("Search %s finished with status %s", name, search.status)
                return search

            if time.monotonic() + interval > deadline:
                raise TimeoutError(
                    f"Search {name!r} still {search.status or 'pending'} after {limit:g}s"
                )

            logger.info("Search %s is %s; polling again in %gs", name, search.status, interval)
            time.sleep(interval)

    def get_action_results(self, identity: str) -> ActionResult:
        """Fetch a search action and expand its results text."""
        action = self.search_client.get_search_action(identity)
        return expand_action_results(action.results)
