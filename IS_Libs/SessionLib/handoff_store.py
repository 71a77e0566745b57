"""
Cross-page handoff slot.

The example gallery passes the chosen image URL to the editor through a small
JSON file. The editor reads the slot once on start-up and clears it, so the
same selection is never applied twice.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import logging

from IS_Libs.constants import HANDOFF_FILE_NAME, HANDOFF_KEY_SELECTED_EXAMPLE

logger = logging.getLogger(__name__)


class HandoffStore:
    """
    JSON-file backed key/value slots with read-once semantics.

    Example:
        >>> store = HandoffStore(tmp_dir)
        >>> store.put("https://example.com/cat.png")
        >>> store.take()
        'https://example.com/cat.png'
        >>> store.take() is None
        True
    """

    def __init__(self, directory: Union[str, Path], file_name: str = HANDOFF_FILE_NAME):
        self.path = Path(directory) / file_name

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable handoff file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)

    def put(self, value: str, key: str = HANDOFF_KEY_SELECTED_EXAMPLE) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def peek(self, key: str = HANDOFF_KEY_SELECTED_EXAMPLE) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) and value else None

    def take(self, key: str = HANDOFF_KEY_SELECTED_EXAMPLE) -> Optional[str]:
        """Return the slot's value and clear it."""
        data = self._read()
        if key not in data:
            return None
        value = data.pop(key)
        self._write(data)
        logger.debug(f"Took handoff slot '{key}'")
        return value if isinstance(value, str) and value else None
