from __future__ import annotations

from typing import Any, Callable, Iterator

from gridexport.domain.ports.grid_source import DEFAULT_PAGE_SIZE, RowPageSourceProtocol, SearchCriteria


class PaginatedRowStream:
    """
    Назначение/ответственность:
        Ленивый однопроходный поток записей источника по страницам: (index, record).

    Алгоритм:
        - Первая страница 1, размер страницы page_size (по умолчанию 200).
        - Страница читается только когда предыдущая полностью отдана потребителю.
        - После каждой страницы общее число строк берётся по тем же criteria, что и страница
          (источник отвечает из кэша без повторной выборки).
        - Остановка, когда отдано >= total; пустая страница всегда конец потока.
        - on_page(page_no, rows) вызывается после каждой прочитанной страницы.

    Инварианты/гарантии:
        - index начинается с 0 и строго возрастает без пропусков.
        - В памяти не больше одной страницы.
        - Поток не перезапускается; close() безопасно прерывает его досрочно.
    """

    def __init__(
        self,
        source: RowPageSourceProtocol,
        criteria: SearchCriteria,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_page: Callable[[int, int], None] | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.source = source
        self.on_page = on_page
        self._base_criteria = criteria.with_page_size(page_size)
        self._current_page = 1
        self._page_rows: Iterator[Any] | None = None
        self._page_criteria: SearchCriteria | None = None
        self._finished = False
        self.yielded_count = 0
        self.pages_fetched = 0
        self.last_total_count: int | None = None
        self.ended_early = False

    def __iter__(self) -> "PaginatedRowStream":
        return self

    def __next__(self) -> tuple[int, Any]:
        while not self._finished:
            if self._page_rows is None:
                self._fetch_page()
                continue
            row = next(self._page_rows, _PAGE_END)
            if row is not _PAGE_END:
                index = self.yielded_count
                self.yielded_count += 1
                return index, row
            self._finish_page()
        raise StopIteration

    def _fetch_page(self) -> None:
        criteria = self._base_criteria.with_page(self._current_page)
        records = self.source.get_records(criteria)
        self.pages_fetched += 1
        if self.on_page is not None:
            self.on_page(self._current_page, len(records))
        if not records:
            # пустая страница = конец потока, даже если total ещё не набран
            self.last_total_count = self.source.get_total_count(criteria)
            self.ended_early = self.yielded_count < self.last_total_count
            self._finished = True
            return
        self._page_criteria = criteria
        self._page_rows = iter(records)

    def _finish_page(self) -> None:
        self._page_rows = None
        self._current_page += 1
        self.last_total_count = self.source.get_total_count(self._page_criteria)
        if self.yielded_count >= self.last_total_count:
            self._finished = True

    def close(self) -> None:
        self._page_rows = None
        self._page_criteria = None
        self._finished = True

    @property
    def finished(self) -> bool:
        return self._finished


_PAGE_END = object()


def iter_grid_rows(
    source: RowPageSourceProtocol,
    criteria: SearchCriteria | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginatedRowStream:
    return PaginatedRowStream(source, criteria or SearchCriteria(), page_size=page_size)


__all__ = ["PaginatedRowStream", "iter_grid_rows"]
