import csv
import logging
from pathlib import Path

from gridexport.domain.grid import Grid
from gridexport.domain.grid_source import GridSource
from gridexport.domain.reporting.collector import ReportCollector
from gridexport.export.csv_export import CsvExportType
from gridexport.infra.sources.csv_grid_source import CsvGridSourceType
from gridexport.usecases.export_usecase import ExportUseCase


def make_grid(tmp_path: Path, rows: int, included_columns=None, keep_all: bool = False) -> Grid:
    src = tmp_path / "source.csv"
    lines = ["sku,name,unit_price"] + [f"S{i},Item {i},{i}.50" for i in range(rows)]
    src.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return Grid(
        GridSource(CsvGridSourceType(str(src))),
        included_columns=included_columns or {},
        keep_all_source_cols=keep_all,
    )


def read_csv(path: str) -> list[list[str]]:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


def test_header_uses_display_labels_in_column_order(tmp_path: Path):
    grid = make_grid(tmp_path, rows=1, included_columns={"unit_price": {"label": "Price", "sortOrder": 1}, "sku": {}})
    export_type = CsvExportType(grid, export_dir=str(tmp_path / "out"))

    assert export_type.get_header_data() == ["Price", "Sku"]
    assert export_type.get_content_type() == "text/csv"


def test_export_writes_all_rows_across_pages(tmp_path: Path):
    grid = make_grid(tmp_path, rows=450, included_columns={"name": {}, "sku": {}})
    export_type = CsvExportType(grid, file_name="items.csv", export_dir=str(tmp_path / "out"))

    path = export_type.create_file_to_download()

    data = read_csv(path)
    assert data[0] == ["Name", "Sku"]
    assert len(data) == 451
    assert data[1] == ["Item 0", "S0"]
    assert data[-1] == ["Item 449", "S449"]
    assert export_type.rows_written == 450
    assert export_type.last_stream.pages_fetched == 3


def test_export_usecase_fills_report(tmp_path: Path):
    grid = make_grid(tmp_path, rows=5, keep_all=True)
    export_type = CsvExportType(grid, file_name="all.csv", export_dir=str(tmp_path / "out"), page_size=2)
    report = ReportCollector(run_id="r1", command="export")
    logger = logging.getLogger("gridexport.tests.export")

    path = ExportUseCase().run(export_type, logger, "r1", report)

    assert Path(path).exists()
    assert report.meta.output_path == path
    assert report.summary.rows_exported == 5
    assert report.summary.pages_fetched == 3
    assert report.summary.rows_total == 5
    assert report.summary.columns_total == 3
    assert [c["key"] for c in report.columns] == ["sku", "name", "unit_price"]


def test_null_value_hint_fills_empty_cells(tmp_path: Path):
    src = tmp_path / "source.csv"
    src.write_text("sku,name\nS1,\nS2,Item 2\n", encoding="utf-8")
    grid = Grid(
        GridSource(CsvGridSourceType(str(src))),
        included_columns={"sku": {}, "name": {"null_value": "n/a"}},
    )

    path = CsvExportType(grid, file_name="nulls.csv", export_dir=str(tmp_path / "out")).create_file_to_download()

    assert read_csv(path) == [["Sku", "Name"], ["S1", "n/a"], ["S2", "Item 2"]]


def test_export_usecase_logs_each_page_at_debug(tmp_path: Path, caplog):
    grid = make_grid(tmp_path, rows=5, keep_all=True)
    export_type = CsvExportType(grid, file_name="paged.csv", export_dir=str(tmp_path / "out"), page_size=2)
    report = ReportCollector(run_id="r2", command="export")
    logger = logging.getLogger("gridexport.tests.export.pages")

    with caplog.at_level(logging.DEBUG, logger="gridexport.tests.export.pages"):
        ExportUseCase().run(export_type, logger, "r2", report)

    page_messages = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Page fetched")]
    assert page_messages == [
        "Page fetched: page=1 rows=2",
        "Page fetched: page=2 rows=2",
        "Page fetched: page=3 rows=1",
    ]
