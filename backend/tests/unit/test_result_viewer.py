"""Unit tests for the ResultViewer: paging and in-result filtering."""

import pytest

from layer_search.application.services import ResultViewer
from layer_search.domain.entities import Record, SearchResult


def _result(n: int) -> SearchResult:
    return SearchResult(
        records=tuple(
            Record(attributes={"idx": i, "name": "Park" if i % 2 else "Road", "note": None})
            for i in range(n)
        ),
    )


def test_23_records_make_three_pages():
    viewer = ResultViewer(page_size=10)
    page = viewer.set_aggregate(_result(23))

    assert page.index == 1
    assert page.total_pages == 3
    assert page.total_records == 23
    assert page.has_next and not page.has_previous


def test_second_page_holds_records_10_to_19():
    viewer = ResultViewer(page_size=10)
    viewer.set_aggregate(_result(23))

    page = viewer.next_page()

    assert [r.attributes["idx"] for r in page.records] == list(range(10, 20))


def test_last_page_is_partial_and_next_is_noop():
    viewer = ResultViewer(page_size=10)
    viewer.set_aggregate(_result(23))

    viewer.go_to(3)
    page = viewer.next_page()

    assert page.index == 3
    assert [r.attributes["idx"] for r in page.records] == [20, 21, 22]
    assert not page.has_next


def test_previous_on_first_page_is_noop():
    viewer = ResultViewer()
    viewer.set_aggregate(_result(5))

    assert viewer.previous_page().index == 1


def test_go_to_clamps_out_of_range_index():
    viewer = ResultViewer(page_size=10)
    viewer.set_aggregate(_result(23))

    assert viewer.go_to(99).index == 3
    assert viewer.go_to(-4).index == 1


def test_filter_is_case_insensitive_over_attribute_values():
    viewer = ResultViewer(page_size=10)
    viewer.set_aggregate(_result(23))

    page = viewer.filter("park")

    assert page.total_records == 11
    assert all(r.attributes["name"] == "Park" for r in page.records)
    assert viewer.active_filter == "park"


def test_filter_with_no_match_yields_zero_pages():
    viewer = ResultViewer(page_size=10)
    viewer.set_aggregate(_result(23))

    page = viewer.filter("zzz")

    assert page.total_pages == 0
    assert page.total_records == 0
    assert page.records == ()
    assert viewer.result.total_count == 23


def test_empty_filter_restores_everything_and_clamps_page():
    viewer = ResultViewer(page_size=10)
    viewer.set_aggregate(_result(23))
    viewer.go_to(3)

    assert viewer.filter("Park").index == 2
    page = viewer.filter("")

    assert page.total_records == 23
    assert page.index == 2
    assert viewer.active_filter is None


def test_new_aggregate_resets_page_and_filter():
    viewer = ResultViewer(page_size=10)
    viewer.set_aggregate(_result(23))
    viewer.go_to(2)
    viewer.filter("Road")

    page = viewer.set_aggregate(_result(4))

    assert page.index == 1
    assert page.total_records == 4
    assert viewer.active_filter is None


def test_no_aggregate_is_a_single_empty_page():
    page = ResultViewer().page()

    assert page.total_pages == 0
    assert page.records == ()


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        ResultViewer(page_size=0)
