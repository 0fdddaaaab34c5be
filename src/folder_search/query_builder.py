"""Content search query construction.

Objective:
    Assemble a KQL ``ContentMatchQuery`` restricting a compliance search to a
    set of folders.

Rules:
    - Every candidate must be a 48-character hex string.
    - One invalid candidate fails the whole batch; a query that silently drops
      a requested folder is never returned.
    - Clauses are ``folderid:<id>`` joined by `` OR `` (the operator must be
      uppercase) in input order.
    - An empty batch yields an empty string. Callers decide whether that means
      "no restriction".
"""

import logging
import string
from typing import Iterable

from .errors import InvalidFolderQueryId

logger = logging.getLogger(__name__)

FOLDER_QUERY_ID_LENGTH = 48
QUERY_SEPARATOR = " OR "
FOLDER_ID_PROPERTY = "folderid:"

_HEX_DIGITS = frozenset(string.hexdigits)


def is_folder_query_id(candidate: str) -> bool:
    """Return True when ``candidate`` is exactly 48 hex digits."""
    return (
        isinstance(candidate, str)
        and len(candidate) == FOLDER_QUERY_ID_LENGTH
        and all(ch in _HEX_DIGITS for ch in candidate)
    )


def build_folder_query(query_ids: Iterable[str]) -> str:
    """Build a ``folderid:`` OR-query from hex folder ids.

    Args:
        query_ids: Canonical hex folder ids.

    Returns:
        str: KQL query, or an empty string when no ids were given.

    Raises:
        InvalidFolderQueryId: On the first candidate that is not 48 hex digits.
    """
    candidates = list(query_ids)

    for candidate in candidates:
        if not is_folder_query_id(candidate):
            raise InvalidFolderQueryId(candidate)

    query = QUERY_SEPARATOR.join(f"{FOLDER_ID_PROPERTY}{c}" for c in candidates)
    logger.debug("Built folder query with %s clause(s)", len(candidates))
    return query
