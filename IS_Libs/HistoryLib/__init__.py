"""
HistoryLib - Undo/redo history

This module provides the bounded snapshot history used by the
Icon Studio editing session.
"""

from IS_Libs.HistoryLib.history_manager import HistoryEntry, HistoryManager

__all__ = [
    "HistoryEntry",
    "HistoryManager",
]
