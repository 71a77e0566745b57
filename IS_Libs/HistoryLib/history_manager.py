"""
Bounded undo/redo history for the icon editor.

The history is a linear sequence of snapshots with a current index. The
snapshot at the current index always mirrors what is rendered. Committing
while the index is not at the tail discards the redo branch; committing past
the bound evicts the oldest snapshot.

Classes:
    HistoryEntry: One committed editor state
    HistoryManager: Bounded snapshot sequence with undo/redo
"""

from dataclasses import dataclass
from typing import Any, List, Optional
import itertools
import logging

from IS_Libs.constants import HISTORY_MAX_LENGTH
from IS_Libs.ImageEditingLib.transform_model import TransformModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    """A committed editor state.

    Attributes:
        model: Transform model snapshot (immutable)
        source: Reference to the SourceImage active at commit time (or None)
        ordinal: Monotonic commit counter
    """
    model: TransformModel
    source: Optional[Any]
    ordinal: int


class HistoryManager:
    """
    Bounded undo/redo stack.

    Example:
        >>> history = HistoryManager(max_length=3)
        >>> history.commit(model_a, source)
        >>> history.commit(model_b, source)
        >>> history.undo().model == model_a
        True
    """

    def __init__(self, max_length: int = HISTORY_MAX_LENGTH):
        if max_length < 1:
            raise ValueError(f"max_length must be >= 1, got {max_length}")
        self.max_length = int(max_length)
        self._entries: List[HistoryEntry] = []
        self._index = -1
        self._ordinals = itertools.count()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    @property
    def current(self) -> Optional[HistoryEntry]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    def commit(self, model: TransformModel, source: Optional[Any] = None) -> HistoryEntry:
        """
        Append a snapshot after the current index.

        Args:
            model: Transform model to record
            source: SourceImage reference active for this state

        Returns:
            The new HistoryEntry (now current)
        """
        if self._index < len(self._entries) - 1:
            dropped = len(self._entries) - 1 - self._index
            del self._entries[self._index + 1:]
            logger.debug(f"Discarded {dropped} redo entries")

        entry = HistoryEntry(model=model, source=source, ordinal=next(self._ordinals))
        self._entries.append(entry)

        if len(self._entries) > self.max_length:
            self._entries.pop(0)
            self._index = len(self._entries) - 1
        else:
            self._index += 1

        return entry

    def undo(self) -> Optional[HistoryEntry]:
        """Step back one snapshot; returns None when there is nothing to undo."""
        if not self.can_undo():
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> Optional[HistoryEntry]:
        """Step forward one snapshot; returns None when there is nothing to redo."""
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._entries) - 1

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
