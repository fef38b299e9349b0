"""Version information for PocketChat."""

__version__ = "0.1.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Release information
__title__ = "pocketchat"
__description__ = "A local-first messaging client backed by SQLite"
__author__ = "PocketChat Team"
__license__ = "MIT"
__copyright__ = "Copyright 2025-2026 PocketChat Team"

