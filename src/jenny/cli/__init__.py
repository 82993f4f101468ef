"""
CLI layer for jenny-core.

Terminal transport only: argument parsing, tables and JSON output. The
engine itself lives in ``jenny.orchestration``.

Entry point::

    jenny --help
"""

from jenny.cli.app import app

__all__ = ["app"]
