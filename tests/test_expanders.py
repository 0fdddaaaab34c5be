import json

import pytest

from src.folder_search.errors import ParseError
from src.folder_search.expanders import (
    expand_action_results,
    expand_search_statistics,
    to_field_name,
)


def _statistics(search, queries=None) -> str:
    binding = {"Search": search}
    if queries is not None:
        binding["Queries"] = queries
    return json.dumps({"ExchangeBinding": binding, "SharePointBinding": None})


def test_expand_statistics_search_object_then_queries() -> None:
    """Search summary comes first, then one record per query breakdown."""

    payload = _statistics(
        {"ContentItems": 42, "ContentSize": 1024},
        [
            {"Query": "folderid:AA", "Location": "user@contoso.com", "ContentItems": 40},
            {"Query": "folderid:BB", "Location": "user@contoso.com", "ContentItems": 2},
        ],
    )

    records = expand_search_statistics(payload)

    assert [r.binding_section for r in records] == ["Search", "Query", "Query"]
    assert records[0].ContentItems == 42
    assert records[0].ContentSize == 1024
    assert records[1].Query == "folderid:AA"
    assert records[2].ContentItems == 2


def test_expand_statistics_search_list_is_kept_as_list() -> None:
    """A list of search summaries yields one record per entry."""

    payload = _statistics([{"ContentItems": 1}, {"ContentItems": 2}], [])

    records = expand_search_statistics(payload)

    assert [r.ContentItems for r in records] == [1, 2]
    assert all(r.binding_section == "Search" for r in records)


def test_expand_statistics_missing_queries_is_empty() -> None:
    """A binding without queries only yields the search summary."""

    records = expand_search_statistics(_statistics({"ContentItems": 0}))

    assert len(records) == 1


def test_expand_statistics_keeps_remote_source_field() -> None:
    """A remote field named 'source' survives next to the section tag."""

    payload = _statistics({"source": "Exchange", "ContentItems": 5}, [{"source": "Query1"}])

    records = expand_search_statistics(payload)

    assert [r.binding_section for r in records] == ["Search", "Query"]
    assert records[0].model_extra == {"source": "Exchange", "ContentItems": 5}
    assert records[1].model_extra == {"source": "Query1"}


def test_expand_statistics_reserved_field_name_raises() -> None:
    """An entry that would overwrite the section tag is a parse error."""

    with pytest.raises(ParseError, match="reserved field name"):
        expand_search_statistics(_statistics({"binding_section": "x"}))


def test_expand_statistics_invalid_json_raises() -> None:
    """Malformed JSON is a parse error."""

    with pytest.raises(ParseError, match="invalid JSON"):
        expand_search_statistics("{not json")


def test_expand_statistics_without_binding_raises() -> None:
    """The ExchangeBinding object is required."""

    with pytest.raises(ParseError, match="ExchangeBinding"):
        expand_search_statistics(json.dumps({"SharePointBinding": {}}))


def test_expand_action_results_title_cases_and_strips_spaces() -> None:
    """Labels become title-cased field names without whitespace."""

    result = expand_action_results("Location: Mailbox; Item Count: 42")

    assert result.fields == {"Location": "Mailbox", "ItemCount": "42"}
    assert result.ItemCount == "42"


def test_expand_action_results_normalizes_lowercase_labels() -> None:
    """Lowercase words are title-cased; values keep their own text."""

    result = expand_action_results(
        "Container url: https://contoso.blob.core.windows.net/x; Total size: 0 B; Num bytes: 0"
    )

    assert result.fields == {
        "ContainerUrl": "https://contoso.blob.core.windows.net/x",
        "TotalSize": "0 B",
        "NumBytes": "0",
    }


def test_expand_action_results_keeps_value_after_first_separator() -> None:
    """Only the first ': ' splits name from value."""

    result = expand_action_results("Scope details: Mailbox: user@contoso.com")

    assert result.fields == {"ScopeDetails": "Mailbox: user@contoso.com"}


def test_expand_action_results_segment_without_separator_raises() -> None:
    """A segment lacking ': ' is a parse error naming the segment."""

    with pytest.raises(ParseError) as excinfo:
        expand_action_results("Location: Mailbox; garbage")

    assert excinfo.value.payload == "garbage"


def test_expand_action_results_none_raises() -> None:
    """Missing results text cannot be expanded."""

    with pytest.raises(ParseError):
        expand_action_results(None)


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Item count", "ItemCount"),
        ("total   size", "TotalSize"),
        ("SAS token", "SASToken"),
        ("Location", "Location"),
    ],
)
def test_to_field_name(label: str, expected: str) -> None:
    """Field names are title-cased and whitespace-free; acronyms are kept."""

    assert to_field_name(label) == expected
