from __future__ import annotations

import logging

from gridexport.domain.columns import ColumnDefinition
from gridexport.domain.grid import Grid
from gridexport.infra.logging.setup import logEvent


class ColumnsUseCase:
    """
    Назначение/ответственность:
        Сведение итогового списка колонок грида для вывода/проверки конфигурации.
    """

    def run(
        self,
        grid: Grid,
        logger: logging.Logger,
        run_id: str,
        report,
    ) -> list[ColumnDefinition]:
        columns = grid.get_column_definitions()
        report.set_columns(columns)
        logEvent(
            logger,
            logging.INFO,
            run_id,
            "columns",
            f"Columns reconciled: configured={len(grid.included_columns)} "
            f"keep_all={grid.keep_all_source_cols} effective={len(columns)}",
        )
        for column in columns:
            logEvent(
                logger,
                logging.DEBUG,
                run_id,
                "columns",
                f"column key={column.key} sort_order={column.sort_order} label={column.display_label}",
            )
        return columns
