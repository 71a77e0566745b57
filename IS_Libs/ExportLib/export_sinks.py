"""
Output sinks for exported icons.

A sink receives (relative path, bytes) pairs from the export orchestrator.

Classes:
    ZipArchiveSink: Streams every artifact into one ZIP archive
    DirectorySink: Writes each artifact as an individual file under a base directory
"""

from pathlib import Path
from typing import List, Optional, Union
import io
import logging
import zipfile

from IS_Libs.constants import DEFAULT_ARCHIVE_NAME
from IS_Libs.errors import EncodeError

logger = logging.getLogger(__name__)


def _validate_relative_path(path_str: str) -> Path:
    """
    Reject absolute paths and parent directory references.

    Raises:
        ValueError: If the path could escape the sink's root
    """
    path = Path(path_str)
    if path.is_absolute():
        raise ValueError(f"Artifact path must be relative: {path_str}")
    for part in path.parts:
        if part == "..":
            raise ValueError(f"Path traversal detected: artifact path contains '..': {path_str}")
    return path


class ZipArchiveSink:
    """
    Collects artifacts into a single in-memory ZIP archive.

    Example:
        >>> sink = ZipArchiveSink()
        >>> sink.add("android/res/drawable-mdpi/ic_launcher.png", png_bytes)
        >>> blob = sink.finish()
    """

    def __init__(self, archive_name: str = DEFAULT_ARCHIVE_NAME):
        self.archive_name = archive_name
        self._buffer = io.BytesIO()
        self._zip: Optional[zipfile.ZipFile] = zipfile.ZipFile(self._buffer, "w", zipfile.ZIP_DEFLATED)
        self._names: List[str] = []
        self._blob: Optional[bytes] = None

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def add(self, path: str, data: bytes) -> None:
        """
        Raises:
            RuntimeError: If the archive was already finished
            ValueError: If the path is absolute or contains '..'
        """
        if self._zip is None:
            raise RuntimeError("Archive already finished")
        arcname = _validate_relative_path(path).as_posix()
        self._zip.writestr(arcname, data)
        self._names.append(arcname)

    def finish(self) -> bytes:
        """
        Close the archive and return its bytes. Calling again returns the same blob.

        Raises:
            EncodeError: If the archive cannot be finalized
        """
        if self._blob is not None:
            return self._blob
        try:
            self._zip.close()
        except (OSError, zipfile.BadZipFile) as e:
            raise EncodeError(f"Failed to finalize archive {self.archive_name}: {e}")
        self._zip = None
        self._blob = self._buffer.getvalue()
        logger.info(f"Archive {self.archive_name} finished with {len(self._names)} files")
        return self._blob

    def write_to(self, output_dir: Union[str, Path], overwrite: bool = False) -> Path:
        """
        Finish the archive and save it under output_dir.

        Raises:
            ValueError: If the file exists and overwrite is False
            OSError: If the file cannot be written
        """
        blob = self.finish()
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / self.archive_name
        if output_file.exists() and not overwrite:
            raise ValueError(
                f"Output file already exists: {output_file}. "
                f"Set overwrite=True to replace."
            )
        output_file.write_bytes(blob)
        return output_file


class DirectorySink:
    """
    Writes each artifact as its own file below a base directory.

    Paths are validated so nothing is written outside the base directory.
    """

    def __init__(self, base_directory: Union[str, Path], overwrite: bool = False, create_directories: bool = True):
        self.base_directory = Path(base_directory).resolve()
        self.overwrite = overwrite
        self.create_directories = create_directories
        self.written: List[Path] = []

    def resolve(self, path: str) -> Path:
        """
        Resolve a relative artifact path inside the base directory.

        Raises:
            ValueError: If the path is absolute, contains '..' or resolves outside the base
        """
        resolved = (self.base_directory / _validate_relative_path(path)).resolve()
        try:
            resolved.relative_to(self.base_directory)
        except ValueError:
            raise ValueError(
                f"Security: artifact path '{path}' resolves to '{resolved}' "
                f"which is outside the base directory '{self.base_directory}'"
            )
        return resolved

    def add(self, path: str, data: bytes) -> None:
        """
        Raises:
            ValueError: If the file exists and overwrite is False, or the path is unsafe
            OSError: If the file cannot be written
        """
        output_file = self.resolve(path)

        if self.create_directories:
            output_file.parent.mkdir(parents=True, exist_ok=True)

        if output_file.exists() and not self.overwrite:
            raise ValueError(
                f"Output file already exists: {output_file}. "
                f"Set overwrite=True to replace."
            )

        output_file.write_bytes(data)
        self.written.append(output_file)

    def finish(self) -> List[Path]:
        return list(self.written)
