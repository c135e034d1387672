from __future__ import annotations

import pytest

from gridexport.domain.paging import PaginatedRowStream, iter_grid_rows
from gridexport.domain.ports.grid_source import SearchCriteria


class FakePageSource:
    """Страницы из списка строк; total можно подменить, страницы после empty_from_page пустые."""

    def __init__(self, total_rows: int, reported_total: int | None = None, empty_from_page: int | None = None):
        self.rows = [{"id": i} for i in range(total_rows)]
        self.reported_total = reported_total if reported_total is not None else total_rows
        self.empty_from_page = empty_from_page
        self.page_requests: list[tuple[int, int]] = []
        self.total_requests = 0

    def get_records(self, criteria: SearchCriteria) -> list:
        self.page_requests.append((criteria.current_page, criteria.page_size))
        if self.empty_from_page is not None and criteria.current_page >= self.empty_from_page:
            return []
        return self.rows[criteria.offset:criteria.offset + criteria.page_size]

    def get_total_count(self, criteria: SearchCriteria) -> int:
        self.total_requests += 1
        return self.reported_total


def test_stream_reads_exactly_needed_pages():
    source = FakePageSource(total_rows=450)

    result = list(iter_grid_rows(source, SearchCriteria(page_size=10, current_page=5), page_size=200))

    assert source.page_requests == [(1, 200), (2, 200), (3, 200)]
    assert [index for index, _row in result] == list(range(450))
    assert [row["id"] for _index, row in result] == list(range(450))


def test_stream_default_page_size_is_200():
    source = FakePageSource(total_rows=201)

    stream = PaginatedRowStream(source, SearchCriteria())

    assert len(list(stream)) == 201
    assert source.page_requests == [(1, 200), (2, 200)]
    assert stream.pages_fetched == 2
    assert stream.last_total_count == 201
    assert stream.ended_early is False


def test_empty_page_before_total_ends_stream():
    source = FakePageSource(total_rows=100, reported_total=450)

    stream = iter_grid_rows(source, SearchCriteria(), page_size=200)
    result = list(stream)

    assert len(result) == 100
    assert source.page_requests == [(1, 200), (2, 200)]
    assert stream.ended_early is True
    assert stream.yielded_count == 100


def test_empty_first_page_yields_nothing():
    source = FakePageSource(total_rows=0)

    stream = iter_grid_rows(source)

    assert list(stream) == []
    assert source.page_requests == [(1, 200)]
    assert stream.ended_early is False


def test_premature_empty_page_while_total_is_stale():
    source = FakePageSource(total_rows=1000, reported_total=1000, empty_from_page=3)

    stream = iter_grid_rows(source, page_size=100)

    assert len(list(stream)) == 200
    assert stream.ended_early is True


def test_shrinking_total_stops_after_current_page():
    source = FakePageSource(total_rows=500, reported_total=150)

    result = list(iter_grid_rows(source, page_size=100))

    # страница дочитывается целиком, затем total (150) уже достигнут
    assert len(result) == 200
    assert source.page_requests == [(1, 100), (2, 100)]


def test_stream_is_lazy_and_fetches_one_page_at_a_time():
    source = FakePageSource(total_rows=30)
    stream = iter_grid_rows(source, page_size=10)

    assert source.page_requests == []
    first = next(stream)
    assert first == (0, {"id": 0})
    assert source.page_requests == [(1, 10)]

    for _ in range(9):
        next(stream)
    assert source.page_requests == [(1, 10)]

    assert next(stream) == (10, {"id": 10})
    assert source.page_requests == [(1, 10), (2, 10)]


def test_close_abandons_stream_early():
    source = FakePageSource(total_rows=30)
    stream = iter_grid_rows(source, page_size=10)

    next(stream)
    stream.close()

    assert stream.finished is True
    with pytest.raises(StopIteration):
        next(stream)
    assert source.page_requests == [(1, 10)]


def test_stream_is_single_pass():
    source = FakePageSource(total_rows=5)
    stream = iter_grid_rows(source, page_size=2)

    assert len(list(stream)) == 5
    assert list(stream) == []


def test_invalid_page_size_is_rejected():
    with pytest.raises(ValueError):
        PaginatedRowStream(FakePageSource(total_rows=1), SearchCriteria(), page_size=0)


def test_adapter_error_propagates():
    class BrokenSource(FakePageSource):
        def get_records(self, criteria):
            raise RuntimeError("fetch failed")

    with pytest.raises(RuntimeError, match="fetch failed"):
        list(iter_grid_rows(BrokenSource(total_rows=3)))


def test_stream_reports_every_fetched_page():
    source = FakePageSource(total_rows=5, reported_total=9, empty_from_page=3)
    pages: list[tuple[int, int]] = []

    stream = PaginatedRowStream(source, SearchCriteria(), page_size=2, on_page=lambda page, rows: pages.append((page, rows)))
    list(stream)

    assert pages == [(1, 2), (2, 2), (3, 0)]
    assert stream.ended_early is True
