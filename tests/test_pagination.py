from __future__ import annotations

from os_ansible_inventory.util.pagination import next_marker_for, paginate


def test_paginate_yields_all_items_and_pages_in_order() -> None:
    calls = []
    pages = {
        None: (["a", "b"], "b"),
        "b": (["c"], None),
    }

    def fetch(marker):
        calls.append(marker)
        return pages[marker]

    items = list(paginate(fetch))
    assert items == ["a", "b", "c"]
    assert calls == [None, "b"]


def test_paginate_stops_when_marker_does_not_advance() -> None:
    calls = []

    def fetch(marker):
        calls.append(marker)
        return ["x"], "same"

    assert list(paginate(fetch)) == ["x", "x"]
    assert calls == [None, "same"]


def test_next_marker_for_empty_page_is_none() -> None:
    assert next_marker_for([], lambda s: s["id"]) is None


def test_next_marker_for_short_page_still_continues() -> None:
    assert next_marker_for([{"id": "1"}], lambda s: s["id"]) == "1"


def test_next_marker_for_uses_last_key() -> None:
    assert next_marker_for([{"id": "1"}, {"id": "2"}], lambda s: s["id"]) == "2"
