"""
Project file storage and management for Icon Studio.

This module handles the persistence layer for Icon Studio projects,
including creating, loading, and saving project files in the .isproj format.

The project file schema includes:
- Project metadata (name, creation date, schema version)
- Source image origin (file path or URL)
- Transform model
- Export options

Functions:
    create_project_file: Create a new project file with default structure
    list_project_files: List all project files in the Projects directory
    load_project_name: Load just the project name from a file
    load_project_data: Load complete project data with validation
    save_project_data: Save project data to file
    load_project_state: Load origin, transform model and export options
    save_project_state: Save origin, transform model and export options
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from IS_Libs.constants import (
    FIELD_CREATED_AT,
    FIELD_EXPORT_OPTIONS,
    FIELD_NAME,
    FIELD_SCHEMA_VERSION,
    FIELD_SOURCE_ORIGIN,
    FIELD_TRANSFORM,
    FILENAME_REPLACEMENT_CHAR,
    PROJECT_EXTENSION,
    PROJECTS_DIR_NAME,
    SAFE_FILENAME_CHARS,
    SCHEMA_VERSION,
)
from IS_Libs.ExportLib.export_orchestrator import ExportOptions
from IS_Libs.ImageEditingLib.transform_model import TransformModel, validate_transform_changes

logger = logging.getLogger(__name__)


def _normalize_transform(data: Any) -> Dict[str, Any]:
    """Normalize a stored transform, dropping values that cannot be parsed."""
    if not isinstance(data, dict):
        return TransformModel().to_dict()

    valid: Dict[str, Any] = {}
    for key, value in data.items():
        if key == "text" or key not in TransformModel.__dataclass_fields__:
            continue
        try:
            validate_transform_changes({key: value})
        except (TypeError, ValueError):
            logger.warning(f"Dropping invalid transform field {key}={value!r}")
            continue
        valid[key] = value

    text = data.get("text")
    if isinstance(text, dict):
        valid["text"] = {}
        for key, value in text.items():
            try:
                validate_transform_changes({f"text_{key}": value})
            except (TypeError, ValueError):
                logger.warning(f"Dropping invalid text field {key}={value!r}")
                continue
            valid["text"][key] = value

    try:
        return TransformModel.from_dict(valid).to_dict()
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding unreadable transform data: {e}")
        return TransformModel().to_dict()


def _normalize_export_options(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        return ExportOptions().to_dict()
    try:
        return ExportOptions.from_dict(data).to_dict()
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding unreadable export options: {e}")
        return ExportOptions().to_dict()


def get_projects_dir(base_dir: Path) -> Path:
    projects_dir = base_dir / PROJECTS_DIR_NAME
    projects_dir.mkdir(parents=True, exist_ok=True)
    return projects_dir


def list_project_files(base_dir: Path) -> List[Path]:
    projects_dir = get_projects_dir(base_dir)
    return sorted(projects_dir.glob(f"*{PROJECT_EXTENSION}"))


def create_project_file(base_dir: Path, project_name: str) -> Path:
    """
    Create a new project file with default structure.

    Args:
        base_dir: Base directory containing the Projects folder
        project_name: Human-readable name for the project

    Returns:
        Path to the created project file
    """
    projects_dir = get_projects_dir(base_dir)

    # Keep only alphanumeric and safe characters
    safe_name = "".join(
        c if c.isalnum() or c in SAFE_FILENAME_CHARS else FILENAME_REPLACEMENT_CHAR
        for c in project_name
    ).strip(FILENAME_REPLACEMENT_CHAR)

    if not safe_name:
        safe_name = "new_project"

    project_path = projects_dir / f"{safe_name}{PROJECT_EXTENSION}"
    counter = 1
    while project_path.exists():
        project_path = projects_dir / f"{safe_name}_{counter}{PROJECT_EXTENSION}"
        counter += 1

    payload: Dict[str, object] = {
        FIELD_SCHEMA_VERSION: SCHEMA_VERSION,
        FIELD_NAME: project_name,
        FIELD_CREATED_AT: datetime.now().isoformat(timespec="seconds"),
        FIELD_SOURCE_ORIGIN: None,
        FIELD_TRANSFORM: TransformModel().to_dict(),
        FIELD_EXPORT_OPTIONS: ExportOptions().to_dict(),
    }

    project_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info(f"Created project {project_path}")
    return project_path


def load_project_name(project_path: Path) -> str:
    """
    Load the project name from a project file.

    Returns:
        The project name, or the filename stem if loading fails
    """
    try:
        payload = json.loads(project_path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return project_path.stem

    if not isinstance(payload, dict):
        return project_path.stem
    return str(payload.get(FIELD_NAME) or project_path.stem)


def load_project_data(project_path: Path) -> Dict[str, Any]:
    """
    Load a project file, normalizing missing or malformed fields.

    Unreadable files yield a default project rather than an error.
    """
    try:
        payload = json.loads(project_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read project {project_path}: {e}")
        payload = {}

    if not isinstance(payload, dict):
        payload = {}

    origin = payload.get(FIELD_SOURCE_ORIGIN)
    payload[FIELD_SOURCE_ORIGIN] = str(origin) if isinstance(origin, str) and origin.strip() else None
    payload[FIELD_TRANSFORM] = _normalize_transform(payload.get(FIELD_TRANSFORM))
    payload[FIELD_EXPORT_OPTIONS] = _normalize_export_options(payload.get(FIELD_EXPORT_OPTIONS))

    payload.setdefault(FIELD_SCHEMA_VERSION, SCHEMA_VERSION)
    payload.setdefault(FIELD_NAME, project_path.stem)
    payload.setdefault(FIELD_CREATED_AT, datetime.now().isoformat(timespec="seconds"))

    return payload


def save_project_data(project_path: Path, payload: Dict[str, Any]) -> None:
    payload[FIELD_SCHEMA_VERSION] = SCHEMA_VERSION
    project_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_project_state(project_path: Path) -> Tuple[Optional[str], TransformModel, ExportOptions]:
    """
    Load what is needed to reopen a project in the editor.

    Returns:
        (source origin or None, transform model, export options)
    """
    payload = load_project_data(project_path)
    return (
        payload[FIELD_SOURCE_ORIGIN],
        TransformModel.from_dict(payload[FIELD_TRANSFORM]),
        ExportOptions.from_dict(payload[FIELD_EXPORT_OPTIONS]),
    )


def save_project_state(
    project_path: Path,
    source_origin: Optional[str],
    model: TransformModel,
    export_options: Optional[ExportOptions] = None,
) -> None:
    payload = load_project_data(project_path)
    payload[FIELD_SOURCE_ORIGIN] = source_origin
    payload[FIELD_TRANSFORM] = model.to_dict()
    payload[FIELD_EXPORT_OPTIONS] = (export_options or ExportOptions()).to_dict()
    save_project_data(project_path, payload)
    logger.info(f"Saved project {project_path}")
