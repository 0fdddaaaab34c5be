"""Command-line interface (CLI) entrypoint.

Objective:
    Provide a human-friendly CLI wrapper around
    :class:`src.folder_search.orchestrator.SearchOrchestrator` and the offline
    folder id helpers.

Responsibilities:
    - Parse arguments (sub-command, mailbox, folder selection, verbosity).
    - Configure logging (including suppressing noisy library request logs).
    - Invoke the orchestrator and print readable results.

High-level call tree:
    - :func:`main`
        - :func:`setup_logging`
            - installs :class:`_LibraryInfoToDebugFilter`
        - ``convert``: :func:`transcode` -> print
        - ``folders``: :meth:`SearchOrchestrator.collect_folders` -> :func:`print_folders`
        - ``query``: :meth:`SearchOrchestrator.build_query` -> print
        - ``search``: :meth:`SearchOrchestrator.run_search` -> :func:`print_search`
        - ``status``: :meth:`SearchOrchestrator.get_search_status` -> :func:`print_status`
        - ``action-results``: :meth:`SearchOrchestrator.get_action_results` -> :func:`print_action_result`
        - ``logout``: :meth:`AdminAuthenticator.logout`

Operational notes:
    - This module supports being run both as a package module
      (``python -m src.folder_search.cli``) and as a script
      (``python src/folder_search/cli.py``). The import fallback handles
      the script case.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

try:
    from .auth import AdminAuthenticator
    from .config import get_settings
    from .folder_ids import transcode, transcode_folders
    from .models import ActionResult, ComplianceSearch, FolderRecord, SearchStatusReport
    from .orchestrator import SearchOrchestrator, resolve_scope
except ImportError:  # pragma: no cover
    src_root = Path(__file__).resolve().parents[1]
    if str(src_root) not in sys.path:
        sys.path.insert(0, str(src_root))

    from folder_search.auth import AdminAuthenticator
    from folder_search.config import get_settings
    from folder_search.folder_ids import transcode, transcode_folders
    from folder_search.models import ActionResult, ComplianceSearch, FolderRecord, SearchStatusReport
    from folder_search.orchestrator import SearchOrchestrator, resolve_scope


class _LibraryInfoToDebugFilter(logging.Filter):
    """Filter to suppress noisy msal/urllib3 INFO logs.

    MSAL and urllib3 log token and connection chatter at INFO level. This
    filter hides those messages unless the root logger is in DEBUG mode.
    """

    NOISY_LOGGERS = ("msal", "urllib3")

    def filter(self, record: logging.LogRecord) -> bool:
        """Determine whether a log record should be emitted.

        Args:
            record: Log record emitted by the logging framework.

        Returns:
            bool: True to allow emission, False to suppress.
        """
        if record.levelno <= logging.INFO and record.name.startswith(self.NOISY_LOGGERS):
            return logging.getLogger().isEnabledFor(logging.DEBUG)
        return True


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the application.

    This sets the root logger level and installs the
    :class:`_LibraryInfoToDebugFilter` on all root handlers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    root_logger = logging.getLogger()
    downgrade_filter = _LibraryInfoToDebugFilter()
    for handler in root_logger.handlers:
        handler.addFilter(downgrade_filter)


def prompt_folder_selection(folders: list[FolderRecord]) -> list[FolderRecord]:
    """Let the user pick folders from a numbered console list.

    The user answers with comma-separated numbers or ranges (``1,3,5-7``);
    an empty answer selects nothing.

    Args:
        folders: Enumerated folders.

    Returns:
        list[FolderRecord]: Chosen folders in list order.
    """
    print()
    for index, folder in enumerate(folders, 1):
        print(
            f"  {index:>3}. [{folder.location.value}] {folder.folder_path} "
            f"({folder.folder_type}, {folder.items_in_folder} items)"
        )

    answer = input("\nFolders to search (e.g. 1,3,5-7): ").strip()
    return [folders[i - 1] for i in parse_selection(answer, len(folders))]


def parse_selection(answer: str, count: int) -> list[int]:
    """Parse ``1,3,5-7`` style answers into sorted 1-based indexes.

    Raises:
        ValueError: On entries that are not numbers or are out of range.
    """
    chosen: set[int] = set()
    for part in answer.split(","):
        part = part.strip()
        if not part:
            continue
        start, _, end = part.partition("-")
        first = int(start)
        last = int(end) if end else first
        if first < 1 or last > count or first > last:
            raise ValueError(f"Selection out of range: {part!r} (1-{count})")
        chosen.update(range(first, last + 1))
    return sorted(chosen)


def print_folders(folders: list[FolderRecord]) -> None:
    """Print folders with their query ids."""
    if not folders:
        print("\nNo folders found.")
        return

    query_ids = {q.folder.folder_id: q.query_id for q in transcode_folders(folders)}

    print(f"\n{'='*60}")
    print(f"FOLDERS: {len(folders)}")
    print(f"{'='*60}\n")
    for folder in folders:
        query_id = query_ids.get(folder.folder_id, "-")
        print(f"  [{folder.location.value}] {folder.folder_path} ({folder.folder_type}, {folder.items_in_folder} items)")
        print(f"      folderid:{query_id}")


def print_search(search: ComplianceSearch) -> None:
    """Print the main fields of a compliance search."""
    print(f"\n{'='*60}")
    print(f"SEARCH: {search.name}")
    print(f"{'='*60}")
    print(f"  Status:   {search.status or '-'}")
    print(f"  Location: {', '.join(search.exchange_location) or '-'}")
    if search.items is not None:
        print(f"  Items:    {search.items}")
    if search.size is not None:
        print(f"  Size:     {search.size}")
    print(f"  Query:    {search.content_match_query or '(unrestricted)'}")
    if search.errors:
        print(f"  Errors:   {search.errors}")


def print_status(report: SearchStatusReport) -> None:
    """Print a search with its expanded statistics."""
    print_search(report.search)
    if not report.statistics:
        return

    print(f"\n  Statistics ({len(report.statistics)} records)")
    print("  " + "-" * 40)
    for record in report.statistics:
        values = ", ".join(f"{k}={v}" for k, v in (record.model_extra or {}).items())
        print(f"  {record.binding_section}: {values}")


def print_action_result(result: ActionResult) -> None:
    """Print an expanded action result as aligned name/value lines."""
    fields = result.fields
    if not fields:
        print("\nNo results.")
        return
    width = max(len(name) for name in fields)
    print()
    for name, value in fields.items():
        print(f"  {name:<{width}} : {value}")


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("mailbox", help="Mailbox address")
    parser.add_argument(
        "--archive-only",
        action="store_true",
        help="Only use folders from the archive mailbox",
    )
    parser.add_argument(
        "--include-archive",
        action="store_true",
        help="Use folders from both the mailbox and its archive",
    )
    parser.add_argument(
        "--folder",
        "-f",
        dest="folder_names",
        action="append",
        default=None,
        help="Folder name fragment to include (case-insensitive, repeatable)",
    )
    parser.add_argument(
        "--select",
        action="store_true",
        help="Pick folders interactively from a numbered list",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all sub-commands."""
    parser = argparse.ArgumentParser(
        description="Folder-scoped compliance searches for Exchange Online mailboxes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s convert LgAAAABXV5oAt1XLR5mKDMdf/8tYAQA8g0kJjzXVTZlomtyxaMeJAAsEdvKpAAAB
  %(prog)s folders user@contoso.com --include-archive
  %(prog)s search user@contoso.com -f inbox -f projects --wait
  %(prog)s status "PSSearch user@contoso.com 20250101-120000"
        """,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    convert = commands.add_parser("convert", help="Convert base64 folder ids to query ids")
    convert.add_argument("folder_ids", nargs="+", help="Base64 folder ids")

    folders = commands.add_parser("folders", help="List folders with their query ids")
    folders.add_argument("mailbox", help="Mailbox address")
    folders.add_argument("--archive-only", action="store_true", help="List archive folders only")
    folders.add_argument(
        "--include-archive", action="store_true", help="List mailbox and archive folders"
    )

    query = commands.add_parser("query", help="Print the folder query without searching")
    _add_selection_arguments(query)

    search = commands.add_parser("search", help="Create and start a compliance search")
    _add_selection_arguments(search)
    search.add_argument("--name", "-n", default=None, help="Search name (generated if omitted)")
    search.add_argument(
        "--allow-unrestricted",
        action="store_true",
        help="Search the whole mailbox when no folder is selected",
    )
    search.add_argument(
        "--wait",
        action="store_true",
        help="Poll the search until it finishes",
    )

    status = commands.add_parser("status", help="Show a search with expanded statistics")
    status.add_argument("name", help="Search name")

    action = commands.add_parser("action-results", help="Show expanded search action results")
    action.add_argument("identity", help="Action identity, e.g. '<search>_Preview'")

    commands.add_parser("logout", help="Remove the cached admin tokens")

    return parser


def main(args: Optional[list[str]] = None) -> int:
    """
    Main CLI entry point.

    This function is structured to be testable: pass an explicit ``args`` list
    instead of relying on ``sys.argv``.

    Args:
        args: Command line arguments (uses sys.argv if None).

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    parsed_args = build_parser().parse_args(args)

    log_level = "DEBUG" if parsed_args.verbose else parsed_args.log_level
    setup_logging(log_level)

    logger = logging.getLogger(__name__)

    try:
        if parsed_args.command == "convert":
            for raw in parsed_args.folder_ids:
                print(f"{raw} -> {transcode(raw) or '-'}")
            return 0

        settings = get_settings()

        if parsed_args.command == "logout":
            AdminAuthenticator(settings).logout()
            print("Token cache cleared.")
            return 0

        orchestrator = SearchOrchestrator(settings=settings)

        if parsed_args.command == "folders":
            scope = resolve_scope(parsed_args.archive_only, parsed_args.include_archive)
            print_folders(orchestrator.collect_folders(parsed_args.mailbox, scope))
            return 0

        if parsed_args.command in ("query", "search"):
            selector = prompt_folder_selection if parsed_args.select else None

        if parsed_args.command == "query":
            query, folder_query_ids = orchestrator.build_query(
                parsed_args.mailbox,
                archive_only=parsed_args.archive_only,
                include_archive=parsed_args.include_archive,
                folder_names=parsed_args.folder_names,
                selector=selector,
            )
            print(f"\n{len(folder_query_ids)} folder(s):\n")
            print(query)
            return 0

        if parsed_args.command == "search":
            search = orchestrator.run_search(
                parsed_args.mailbox,
                name=parsed_args.name,
                archive_only=parsed_args.archive_only,
                include_archive=parsed_args.include_archive,
                folder_names=parsed_args.folder_names,
                selector=selector,
                allow_unrestricted=parsed_args.allow_unrestricted,
            )
            if parsed_args.wait:
                orchestrator.wait_for_search(search.name)
                print_status(orchestrator.get_search_status(search.name))
            else:
                print_search(search)
            return 0

        if parsed_args.command == "status":
            print_status(orchestrator.get_search_status(parsed_args.name))
            return 0

        if parsed_args.command == "action-results":
            print_action_result(orchestrator.get_action_results(parsed_args.identity))
            return 0

        return 1

    except Exception as e:
        logger.exception("Fatal error")
        print(f"\n❌ Error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
