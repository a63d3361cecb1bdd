from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from rich import box
from rich.console import Console, JustifyMethod
from rich.logging import RichHandler
from rich.style import StyleType
from rich.table import Table
from rich.text import Text

from kbuild.logging import ROOT_LOGGER_NAME, configure_logger


class Colors(Enum):
    SUCCESS = "green"
    ERROR = "red"
    WARNING = "yellow"
    DEBUG = "cyan"
    INFO = "blue"
    DEFAULT = "white"
    PRIMARY = "#87AFA3"
    SECONDARY = "#B5A46D"


class RichLogger:
    def __init__(
        self,
        level: int = logging.INFO,
        *,
        console: Console | None = None,
    ) -> None:
        self.console = console or Console()
        self.handler = RichHandler(
            console=self.console,
            show_path=False,
            markup=False,
            show_time=False,
            rich_tracebacks=True,
        )

        configure_logger(level=level, handler=self.handler, force=True)
        self._logger = logging.getLogger(ROOT_LOGGER_NAME)

    def setLevel(self, level: int) -> None:
        self._logger.setLevel(level)

    def print(self, *args: Any, **kwargs: Any) -> None:
        self.console.print(*args, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **kwargs)

    def success(self, message: str, **kwargs: Any) -> None:
        self.console.print(Text(message, style=f"bold {Colors.SUCCESS.value}"), **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **kwargs)

    def panel(self, title: str, body: str, *, color: Colors = Colors.ERROR) -> None:
        self.console.print(Text(title, style=f"bold {color.value}"))
        self.console.print(Text(body))

    def table(
        self,
        title: str,
        *,
        max_cell_width: int = 100,
        **columns: Any,
    ) -> None:
        column_names = list(columns.keys())
        assert len(column_names) > 0, "Must provide at least one column"
        n_rows = len(columns[column_names[0]])
        assert all(len(columns[name]) == n_rows for name in column_names), (
            "All columns must have the same number of rows"
        )

        table = Table(
            title=title,
            box=box.ASCII_DOUBLE_HEAD,
            title_style=f"bold {Colors.PRIMARY.value}",
            title_justify="left",
        )

        for name in column_names:
            justify: JustifyMethod = "left"
            style: StyleType | None = None
            if n_rows and isinstance(columns[name][0], int | float):
                justify = "right"
                style = "bold cyan"

            table.add_column(str(name), overflow="fold", justify=justify, style=style)

        for row_idx in range(n_rows):
            row_values: list[str] = []
            for name in column_names:
                value = columns.get(name, [])[row_idx]
                cell = "" if value is None else str(value)
                if max_cell_width and len(cell) > max_cell_width:
                    side_len = max_cell_width // 2
                    cell = cell[:side_len] + " … " + cell[-side_len:]
                row_values.append(cell)

            table.add_row(*row_values)

        self.console.print(table)


logger = RichLogger(level=logging.INFO)


def setup_rich_logging(verbosity: int = 0, *, quiet: bool = False) -> None:
    if quiet:
        logger.setLevel(logging.WARNING)
    elif verbosity >= 1:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)
