"""Folder-scoped compliance search package.

Objective:
    Help Exchange Online administrators restrict a Microsoft Purview
    compliance search to chosen mailbox folders:
    - Enumerate mailbox (and archive) folders through the admin REST API.
    - Convert each base64 ``FolderId`` into the hex ``folderid:`` query id.
    - Build the ``folderid:... OR folderid:...`` content match query.
    - Create, start and poll the compliance search, and expand its results.

Key modules:
    - :mod:`src.folder_search.folder_ids`:
        Folder id transcoding.
    - :mod:`src.folder_search.query_builder`:
        Query validation and assembly.
    - :mod:`src.folder_search.folder_source`:
        Folder enumeration strategies.
    - :mod:`src.folder_search.search_client`:
        Compliance search job calls.
    - :mod:`src.folder_search.expanders`:
        Status payload expansion.
    - :mod:`src.folder_search.orchestrator`:
        End-to-end workflow coordination.
    - :mod:`src.folder_search.cli`:
        User-facing entrypoint.
"""

__version__ = "0.1.0"
