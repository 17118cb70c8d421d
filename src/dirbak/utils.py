"""Utility functions for dirbak."""

from __future__ import annotations

import logging
from datetime import datetime

from dirbak.config import dirbak_home


def format_size(size_bytes: int) -> str:
    """Format a byte count for display (e.g. ``1.5 MB``)."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ("KB", "MB"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} GB"


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging with daily rotation to ~/.dirbak/logs/."""
    log_directory = dirbak_home() / "logs"
    log_directory.mkdir(parents=True, exist_ok=True)

    today = datetime.now().strftime("%y%m%d")
    log_file = log_directory / f"dirbak-{today}.log"

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )
