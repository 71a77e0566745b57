"""
ProjStoreLib - Project file storage and management

This module handles persistence of Icon Studio projects,
including loading, saving, and managing project files.
"""

from IS_Libs.ProjStoreLib.project_store import (
    create_project_file,
    list_project_files,
    load_project_name,
    load_project_data,
    save_project_data,
    load_project_state,
    save_project_state,
    get_projects_dir,
)

__all__ = [
    "create_project_file",
    "list_project_files",
    "load_project_name",
    "load_project_data",
    "save_project_data",
    "load_project_state",
    "save_project_state",
    "get_projects_dir",
]
