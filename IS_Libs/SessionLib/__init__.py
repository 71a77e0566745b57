"""
SessionLib - Editing session and its collaborators

This module provides the editing session context object, input coalescing,
status messages, image source I/O and the cross-page handoff slot.
"""

from IS_Libs.SessionLib.editor_session import EditorSession
from IS_Libs.SessionLib.handoff_store import HandoffStore
from IS_Libs.SessionLib.image_loader import (
    decode_data_url,
    fetch_image_url,
    is_supported_format,
    load_image_file,
    load_image_source,
)
from IS_Libs.SessionLib.input_coalescer import DragCoalescer
from IS_Libs.SessionLib.status_messages import StatusBoard, StatusMessage

__all__ = [
    "DragCoalescer",
    "EditorSession",
    "HandoffStore",
    "StatusBoard",
    "StatusMessage",
    "decode_data_url",
    "fetch_image_url",
    "is_supported_format",
    "load_image_file",
    "load_image_source",
]
