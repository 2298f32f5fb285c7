from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: int = logging.INFO) -> None:
    # stderr only: stdout carries exported banks and JSON results
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, markup=False)],
    )
    # APScheduler logs every interval run at INFO
    logging.getLogger("apscheduler").setLevel(max(level, logging.WARNING))
