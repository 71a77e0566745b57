"""
Transient status messages.

The editor shows one short line of feedback (loaded, exported, failed...).
Messages expire on their own; errors stay up longer than info and success.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional
import logging
import time

from IS_Libs.constants import STATUS_ERROR_TTL_SECONDS, STATUS_MESSAGE_TTL_SECONDS

logger = logging.getLogger(__name__)

STATUS_INFO = "info"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"
STATUS_KINDS = (STATUS_INFO, STATUS_SUCCESS, STATUS_ERROR)


@dataclass(frozen=True)
class StatusMessage:
    kind: str
    text: str
    posted_at: float
    expires_at: float

    def is_active(self, now: float) -> bool:
        return now < self.expires_at


class StatusBoard:
    """
    Holds the status messages currently on screen.

    Args:
        clock: Returns the current time in seconds (time.monotonic by default)
        ttl: Lifetime of info and success messages
        error_ttl: Lifetime of error messages
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        ttl: float = STATUS_MESSAGE_TTL_SECONDS,
        error_ttl: float = STATUS_ERROR_TTL_SECONDS,
    ):
        self._clock = clock or time.monotonic
        self.ttl = ttl
        self.error_ttl = error_ttl
        self._messages: List[StatusMessage] = []

    def notify(self, kind: str, text: str) -> StatusMessage:
        """
        Post a message.

        Raises:
            ValueError: If kind is not 'info', 'success' or 'error'
        """
        if kind not in STATUS_KINDS:
            raise ValueError(f"Unknown status kind: {kind}")
        now = self._clock()
        lifetime = self.error_ttl if kind == STATUS_ERROR else self.ttl
        message = StatusMessage(kind=kind, text=text, posted_at=now, expires_at=now + lifetime)
        self._messages.append(message)

        if kind == STATUS_ERROR:
            logger.warning(f"Status: {text}")
        else:
            logger.info(f"Status: {text}")
        return message

    def info(self, text: str) -> StatusMessage:
        return self.notify(STATUS_INFO, text)

    def success(self, text: str) -> StatusMessage:
        return self.notify(STATUS_SUCCESS, text)

    def error(self, text: str) -> StatusMessage:
        return self.notify(STATUS_ERROR, text)

    def active(self, now: Optional[float] = None) -> List[StatusMessage]:
        """Return unexpired messages, oldest first, dropping expired ones."""
        now = self._clock() if now is None else now
        self._messages = [m for m in self._messages if m.is_active(now)]
        return list(self._messages)

    def latest(self, now: Optional[float] = None) -> Optional[StatusMessage]:
        messages = self.active(now)
        return messages[-1] if messages else None

    def clear(self) -> None:
        self._messages.clear()
