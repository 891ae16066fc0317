"""Workspace package: persistence of completed runs."""

from erpro.workspace.history import HISTORY_LIMIT, RunHistoryStore

__all__ = ["HISTORY_LIMIT", "RunHistoryStore"]
