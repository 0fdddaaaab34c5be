"""Folder identifier transcoding.

Objective:
    Convert the base64 ``FolderId`` reported by mailbox folder statistics into
    the hex form accepted by the ``folderid:`` property of the content search
    query language.

Layout of a decoded folder id:
    - 23 header bytes (store and namespace metadata)
    - the folder's own id (24 bytes)
    - 1 trailing marker byte

High-level call tree:
    - :func:`transcode_folders`
        - :func:`to_folder_query_id`
            - :func:`transcode`
"""

import base64
import binascii
import logging
from typing import Iterable, Optional

from .errors import MalformedIdentifier
from .models import FolderQueryId, FolderRecord

logger = logging.getLogger(__name__)

HEADER_LENGTH = 23
PAYLOAD_LENGTH = 24
TRAILER_LENGTH = 1


def transcode(raw: Optional[str]) -> Optional[str]:
    """Convert a base64 folder id into its uppercase hex query id.

    Empty input is a no-op so that callers walking a list of folders can skip
    folders without an identifier.

    Args:
        raw: Base64-encoded folder id.

    Returns:
        Optional[str]: Uppercase hex string, or None for empty input.

    Raises:
        MalformedIdentifier: If ``raw`` is not base64 or does not decode to
            header, 24-byte payload and trailer.
    """
    if not raw:
        return None

    try:
        decoded = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedIdentifier(raw, f"not valid base64 ({e})") from e

    if len(decoded) < HEADER_LENGTH + TRAILER_LENGTH:
        raise MalformedIdentifier(
            raw,
            f"decoded to {len(decoded)} bytes, need at least "
            f"{HEADER_LENGTH + TRAILER_LENGTH}",
        )

    payload = decoded[HEADER_LENGTH : len(decoded) - TRAILER_LENGTH]
    if len(payload) != PAYLOAD_LENGTH:
        raise MalformedIdentifier(
            raw,
            f"decoded to a {len(payload)}-byte folder id, expected {PAYLOAD_LENGTH}",
        )

    return payload.hex().upper()


def to_folder_query_id(folder: FolderRecord) -> Optional[FolderQueryId]:
    """Derive the query id for a folder record.

    Args:
        folder: Folder statistics record.

    Returns:
        Optional[FolderQueryId]: Query id, or None when the folder has no id.
    """
    query_id = transcode(folder.folder_id)
    if query_id is None:
        return None
    return FolderQueryId(query_id=query_id, folder=folder)


def transcode_folders(folders: Iterable[FolderRecord]) -> list[FolderQueryId]:
    """Derive query ids for a batch of folders, skipping folders without ids.

    A malformed id aborts the whole batch.
    """
    results = []
    for folder in folders:
        folder_query_id = to_folder_query_id(folder)
        if folder_query_id is None:
            logger.debug("Skipping folder without id: %s", folder.folder_path)
            continue
        results.append(folder_query_id)
    return results
