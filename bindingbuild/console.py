"""Console output with a configurable log level."""
from __future__ import annotations

import sys


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < info < debug
    Default: 'info'
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "info": 2,
        "debug": 3,
    }

    def __init__(self, level: str = "info", dry_run: bool = False):
        if level not in self.LEVELS:
            raise ValueError(f"Unknown log level '{level}'. Choose from: {', '.join(self.LEVELS)}")
        self.level_name = level
        self.level = self.LEVELS[level]
        self.dry_run = dry_run

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            print(message)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            print(message, file=sys.stderr)

    def dry(self, message: str) -> None:
        if self.dry_run:
            print(f"[DRY] {message}")

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            print(f"[DEBUG] {message}")
