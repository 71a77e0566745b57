"""
ExportLib - Multi-resolution icon export

This module provides the platform size tables, the export orchestrator and
the archive/directory sinks for Icon Studio.
"""

from IS_Libs.ExportLib.export_orchestrator import (
    ExportArtifact,
    ExportFailure,
    ExportOptions,
    ExportProgress,
    ExportReport,
    encode_png,
    export_icons,
    iter_export,
    render_export_size,
)
from IS_Libs.ExportLib.export_sinks import DirectorySink, ZipArchiveSink
from IS_Libs.ExportLib.size_tables import (
    ANDROID_DENSITIES,
    ANDROID_STORE_LISTING,
    IOS_APP_ICONS,
    SizeTable,
    SizeTableEntry,
    get_size_table,
    list_platforms,
    register_size_table,
)

__all__ = [
    "ANDROID_DENSITIES",
    "ANDROID_STORE_LISTING",
    "IOS_APP_ICONS",
    "DirectorySink",
    "ExportArtifact",
    "ExportFailure",
    "ExportOptions",
    "ExportProgress",
    "ExportReport",
    "SizeTable",
    "SizeTableEntry",
    "ZipArchiveSink",
    "encode_png",
    "export_icons",
    "get_size_table",
    "iter_export",
    "list_platforms",
    "register_size_table",
    "render_export_size",
]
