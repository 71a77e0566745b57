"""
EditorLib - Desktop editor

This module provides the PyQt5 main window for Icon Studio.
"""

from IS_Libs.EditorLib.icon_editor_window import IconEditorWindow, main

__all__ = [
    "IconEditorWindow",
    "main",
]
