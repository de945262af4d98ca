from __future__ import annotations

import pytest

from choco.search import SearchEntry, build_index, build_search_aggregates, query

SECTION_ORDER = ["Brand", "Region", "Age Group", "Channel", "Fact"]


@pytest.fixture
def index(sample_records):
    return build_index(build_search_aggregates(sample_records))


def test_index_sections_come_in_fixed_order(index):
    positions = [SECTION_ORDER.index(entry.category) for entry in index]
    assert positions == sorted(positions)
    assert [e.title for e in index if e.category == "Brand"] == [
        "Cadbury Dairy Milk",
        "Amul Dark",
        "Ferrero Rocher",
        "Hershey's",
    ]
    assert [e.title for e in index if e.category == "Fact"] == ["Total Revenue", "Average Spend", "Total Consumers"]


def test_entries_carry_view_and_payload(index):
    north = next(e for e in index if e.title == "North")
    assert north.target_view == "regional-spending"
    assert north.payload == {"region": "North", "consumers": 2, "avg_spend": 200, "revenue": 400.0}
    dairy = next(e for e in index if e.title == "Cadbury Dairy Milk")
    assert dairy.payload["share_pct"] == 40.0
    assert "40.0% of consumers" in dairy.description


def test_query_is_case_insensitive_substring(index):
    assert [e.title for e in query(index, "DARK")] == ["Amul Dark"]
    assert [e.title for e in query(index, "  north ")] == ["North"]


def test_query_matches_keywords_and_keeps_index_order(index):
    results = query(index, "revenue")
    categories = [e.category for e in results]
    assert categories == ["Channel", "Channel", "Channel", "Fact"]
    assert results[-1].title == "Total Revenue"


def test_query_matches_category(index):
    results = query(index, "age group")
    assert [e.title for e in results] == ["Age 13-20", "Age 21-30", "Age 31-40", "Age 41-50", "Age 60+"]


@pytest.mark.parametrize("text", ["", "   ", None])
def test_blank_query_matches_nothing(index, text):
    assert query(index, text) == []


def test_empty_records_give_empty_index():
    index = build_index(build_search_aggregates([]))
    assert index == []
    assert query(index, "anything") == []


def test_no_match(index):
    assert query(index, "zzz") == []


def test_entry_to_dict_drops_keywords():
    entry = SearchEntry("West", "desc", "Region", "regional-spending", {"region": "West"}, ("region",))
    assert entry.to_dict() == {
        "title": "West",
        "description": "desc",
        "category": "Region",
        "target_view": "regional-spending",
        "payload": {"region": "West"},
    }
