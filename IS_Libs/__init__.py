"""
IS_Libs - Icon Studio Library Modules

This package contains core functionality for the Icon Studio project,
organized into specialized sub-packages:

- ImageEditingLib: Transform model, compositor and pixel filters
- HistoryLib: Bounded undo/redo history of editor snapshots
- ExportLib: Size tables, export orchestration and output sinks
- SessionLib: Editing session, input coalescing, image loading and handoff
- ProjStoreLib: Project file management and persistence
- EditorLib: PyQt5 desktop editor window
"""

__version__ = "0.1.0"
