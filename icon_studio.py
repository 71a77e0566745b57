"""
Icon Studio entry point.

Without arguments the desktop editor is opened. With --export the icon set is
rendered headless from a source image and written to disk.

Examples:
    python icon_studio.py
    python icon_studio.py logo.png --export out/ --shape circle --padding 32
    python icon_studio.py https://example.com/logo.png --export out/ --ios --zip
    python icon_studio.py logo.png --export out/ --save-project "Launcher icon"
    python icon_studio.py --list-projects
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import argparse
import logging
import sys

from IS_Libs.constants import (
    ICON_SHAPES,
    PADDING_UNITS,
    PLATFORM_ANDROID,
    PLATFORM_ANDROID_STORE,
    PLATFORM_IOS,
    SHARPEN_BORDER_REPLICATE,
    SHARPEN_BORDER_ZERO,
)
from IS_Libs.errors import IconStudioError
from IS_Libs.ExportLib.export_orchestrator import ExportOptions
from IS_Libs.ExportLib.export_sinks import DirectorySink, ZipArchiveSink
from IS_Libs.ImageEditingLib.pixel_filters import selectable_filter_kinds
from IS_Libs.ImageEditingLib.transform_model import validate_transform_changes
from IS_Libs.ProjStoreLib.project_store import (
    create_project_file,
    list_project_files,
    load_project_name,
    save_project_state,
)
from IS_Libs.SessionLib.editor_session import EditorSession

logger = logging.getLogger("icon_studio")

# CLI option -> TransformModel field
TRANSFORM_OPTIONS = {
    "scale": "scale",
    "rotation": "rotation",
    "x_offset": "x_offset",
    "y_offset": "y_offset",
    "background": "background_color",
    "padding": "padding",
    "padding_unit": "padding_unit",
    "border_width": "border_width",
    "border_color": "border_color",
    "shape": "icon_shape",
    "filter": "filter_kind",
    "blur_radius": "blur_radius",
    "text": "text_content",
    "font_size": "text_font_size",
    "font_color": "text_font_color",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="icon_studio", description="Compose and export app icons.")
    parser.add_argument("source", nargs="?", help="Image file, http(s) URL or data: URL")
    parser.add_argument("--export", metavar="DIR", help="Export headless into DIR instead of opening the editor")
    parser.add_argument("--zip", action="store_true", help="Write one archive instead of individual files")
    parser.add_argument("--ios", action="store_true", help="Include the iOS AppIcon sizes")
    parser.add_argument("--store", action="store_true", help="Include the 512px store listing icon")
    parser.add_argument("--sharpen", action="store_true", help="Sharpen every exported size")
    parser.add_argument(
        "--sharpen-border",
        choices=(SHARPEN_BORDER_REPLICATE, SHARPEN_BORDER_ZERO),
        default=SHARPEN_BORDER_REPLICATE,
    )
    parser.add_argument("--overwrite", action="store_true", help="Replace existing files")
    parser.add_argument("--handoff-dir", type=Path, help="Directory holding the gallery handoff file")
    parser.add_argument(
        "--projects-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory holding the Projects folder (default: current directory)",
    )
    parser.add_argument("--list-projects", action="store_true", help="List saved projects and exit")
    parser.add_argument("--save-project", metavar="NAME", help="After a headless export, save the settings as a new project")

    model_group = parser.add_argument_group("transform")
    model_group.add_argument("--scale", type=float)
    model_group.add_argument("--rotation", type=float)
    model_group.add_argument("--x-offset", type=float)
    model_group.add_argument("--y-offset", type=float)
    model_group.add_argument("--background", help="Hex colour, e.g. #ffffff")
    model_group.add_argument("--padding", type=float)
    model_group.add_argument("--padding-unit", choices=PADDING_UNITS)
    model_group.add_argument("--border-width", type=float)
    model_group.add_argument("--border-color")
    model_group.add_argument("--shape", choices=ICON_SHAPES)
    model_group.add_argument("--filter", choices=selectable_filter_kinds())
    model_group.add_argument("--blur-radius", type=float)
    model_group.add_argument("--text")
    model_group.add_argument("--font-size", type=float)
    model_group.add_argument("--font-color")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def collect_transform_changes(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Gather transform options given on the command line.

    Raises:
        ValueError: If a value is out of range
    """
    changes = {
        field: getattr(args, option)
        for option, field in TRANSFORM_OPTIONS.items()
        if getattr(args, option) is not None
    }
    validate_transform_changes(changes)
    return changes


def run_export(args: argparse.Namespace, changes: Dict[str, Any]) -> int:
    """Headless export; returns the process exit code."""
    session = EditorSession()
    session.load_reference(args.source)
    if changes:
        session.commit_change(changes)

    platforms = [PLATFORM_ANDROID]
    if args.store:
        platforms.append(PLATFORM_ANDROID_STORE)
    if args.ios:
        platforms.append(PLATFORM_IOS)
    options = ExportOptions(
        platforms=platforms,
        sharpen=args.sharpen,
        sharpen_border_mode=args.sharpen_border,
        reference_size=session.reference_size,
    )

    output_dir = Path(args.export)
    if args.zip:
        sink: Any = ZipArchiveSink(options.archive_name)
    else:
        sink = DirectorySink(output_dir, overwrite=args.overwrite)

    report = session.export(options, sinks=[sink])
    if args.zip and report.artifacts:
        saved = sink.write_to(output_dir, overwrite=args.overwrite)
        print(f"Wrote {saved}")
    else:
        for artifact in report.artifacts:
            print(f"Wrote {artifact.path}")

    for failure in report.failures:
        print(f"FAILED {failure.platform}/{failure.name} ({failure.pixel_size}px): {failure.error}", file=sys.stderr)

    if args.save_project is not None:
        project_path = create_project_file(args.projects_dir, args.save_project)
        origin = session.source.origin if session.source else None
        save_project_state(project_path, origin, session.model, options)
        print(f"Saved project {project_path}")
    return 1 if report.failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_projects:
        for project_file in list_project_files(args.projects_dir):
            print(f"{load_project_name(project_file)}\t{project_file}")
        return 0

    try:
        changes = collect_transform_changes(args)
    except ValueError as e:
        parser.error(str(e))

    if args.export:
        if not args.source:
            parser.error("--export requires a source image")
        try:
            return run_export(args, changes)
        except IconStudioError as e:
            logger.error(str(e))
            return 1
        except (OSError, ValueError) as e:
            logger.error(f"Export failed: {e}")
            return 1

    from IS_Libs.EditorLib.icon_editor_window import main as run_editor

    return run_editor(
        sys.argv[:1],
        handoff_dir=args.handoff_dir,
        source=args.source,
        projects_base=args.projects_dir,
    )


if __name__ == "__main__":
    sys.exit(main())
