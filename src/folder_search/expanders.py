"""Compliance search status expansion.

Objective:
    Reshape the semi-structured status payloads reported by the compliance
    search service into flat records that are easy to print or export.

Payload shapes:
    - ``SearchStatistics`` (JSON)::

        {"ExchangeBinding": {"Search": {...}, "Queries": [{...}, ...]}, ...}

      ``Search`` is sometimes a single object and sometimes a list.
    - Search action ``Results`` (text)::

        Container url: https://...; Item count: 42; Total size: 1024

High-level call tree:
    - :func:`expand_search_statistics` -> list of :class:`ExpandedStatistic`
    - :func:`expand_action_results` -> :class:`ActionResult`
        - :func:`to_field_name`
"""

import json
import logging
from typing import Any

from .errors import ParseError
from .models import ActionResult, ExpandedStatistic

logger = logging.getLogger(__name__)

PAIR_SEPARATOR = "; "
NAME_VALUE_SEPARATOR = ": "


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def expand_search_statistics(payload: str) -> list[ExpandedStatistic]:
    """Flatten a ``SearchStatistics`` JSON document.

    Search summary entries come first, followed by per-query entries.

    Args:
        payload: JSON text reported by ``Get-ComplianceSearch``.

    Returns:
        list[ExpandedStatistic]: Flattened entries.

    Raises:
        ParseError: If the payload is not JSON or has no ``ExchangeBinding``.
    """
    try:
        document = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as e:
        raise ParseError(str(payload), f"invalid JSON ({e})") from e

    if not isinstance(document, dict):
        raise ParseError(payload, "expected a JSON object")

    binding = document.get("ExchangeBinding")
    if not isinstance(binding, dict):
        raise ParseError(payload, "missing ExchangeBinding object")

    records: list[ExpandedStatistic] = []
    for entry in _as_list(binding.get("Search")):
        records.append(ExpandedStatistic(binding_section="Search", **_entry_fields(entry, payload)))
    for entry in _as_list(binding.get("Queries")):
        records.append(ExpandedStatistic(binding_section="Query", **_entry_fields(entry, payload)))

    logger.debug("Expanded %s statistic record(s)", len(records))
    return records


def _entry_fields(entry: Any, payload: str) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise ParseError(payload, f"expected an object entry, got {type(entry).__name__}")
    if "binding_section" in entry:
        raise ParseError(payload, "entry uses the reserved field name 'binding_section'")
    return dict(entry)


def to_field_name(name: str) -> str:
    """Turn a result label into a field name.

    Words are title-cased (all-uppercase words such as ``SAS`` are kept) and
    whitespace is removed: ``Item count`` -> ``ItemCount``.
    """
    words = []
    for word in name.split():
        if word.isupper():
            words.append(word)
        else:
            words.append(word[:1].upper() + word[1:].lower())
    return "".join(words)


def expand_action_results(payload: str) -> ActionResult:
    """Expand a ``"; "``-delimited search action result into one record.

    Args:
        payload: Results text reported by ``Get-ComplianceSearchAction``.

    Returns:
        ActionResult: Record with one field per ``Name: Value`` pair.

    Raises:
        ParseError: If a segment has no ``": "`` separator.
    """
    if payload is None:
        raise ParseError("None", "no results text")

    fields: dict[str, str] = {}
    for segment in payload.strip().split(PAIR_SEPARATOR):
        name, separator, value = segment.partition(NAME_VALUE_SEPARATOR)
        if not separator:
            raise ParseError(segment, f"segment lacks {NAME_VALUE_SEPARATOR!r} separator")
        field_name = to_field_name(name)
        if not field_name:
            raise ParseError(segment, "segment has an empty name")
        fields[field_name] = value

    return ActionResult(**fields)
