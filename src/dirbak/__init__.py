"""dirbak - directory backup with blacklist filtering and archive rotation."""

__version__ = "0.1.0"
