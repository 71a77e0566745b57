"""
Continuous input coalescing.

While a slider is dragged, input events arrive far faster than the canvas
can be re-rendered. DragCoalescer keeps only the latest value, renders it at
most once per interval, and on release renders and commits the final value.
Commits therefore happen once per gesture, never per event.
"""

from typing import Any, Callable, Optional
import logging
import time

from IS_Libs.constants import DRAG_RENDER_INTERVAL_MS

logger = logging.getLogger(__name__)

_NO_VALUE = object()


class DragCoalescer:
    """
    Throttle renders during a drag and commit once when it settles.

    Args:
        render: Called with the latest value to redraw the preview
        commit: Called with the final value when the gesture ends
        interval_ms: Minimum time between renders during the drag
        clock: Returns the current time in seconds (time.monotonic by default)

    Example:
        >>> coalescer = DragCoalescer(session.preview_change, session.commit_change)
        >>> coalescer.sample({"rotation": 10})
        >>> coalescer.sample({"rotation": 12})
        >>> coalescer.release()
    """

    def __init__(
        self,
        render: Callable[[Any], None],
        commit: Callable[[Any], None],
        interval_ms: float = DRAG_RENDER_INTERVAL_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {interval_ms}")
        self._render = render
        self._commit = commit
        self.interval = interval_ms / 1000.0
        self._clock = clock or time.monotonic
        self._latest: Any = _NO_VALUE
        self._dirty = False
        self._last_render: Optional[float] = None

    @property
    def active(self) -> bool:
        return self._latest is not _NO_VALUE

    @property
    def has_pending(self) -> bool:
        return self._dirty

    def sample(self, value: Any) -> bool:
        """
        Record a new input value; render it if the interval has elapsed.

        Returns:
            True if a render happened
        """
        self._latest = value
        self._dirty = True
        return self.poll()

    def poll(self) -> bool:
        """Render the pending value if one is waiting and the interval has elapsed."""
        if not self._dirty:
            return False
        now = self._clock()
        if self._last_render is not None and now - self._last_render < self.interval:
            return False
        self._render_latest(now)
        return True

    def release(self, value: Any = _NO_VALUE) -> None:
        """
        End the gesture: render the final value and commit it.

        Args:
            value: Final value; the last sampled value if omitted
        """
        if value is not _NO_VALUE:
            self._latest = value
        if self._latest is _NO_VALUE:
            return

        final = self._latest
        self._render_latest(self._clock())
        self._latest = _NO_VALUE
        self._last_render = None
        logger.debug(f"Drag settled on {final!r}")
        self._commit(final)

    def cancel(self) -> None:
        """Drop the gesture without committing."""
        self._latest = _NO_VALUE
        self._dirty = False
        self._last_render = None

    def _render_latest(self, now: float) -> None:
        self._dirty = False
        self._last_render = now
        self._render(self._latest)
