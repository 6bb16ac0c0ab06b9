from __future__ import annotations

import os
from pathlib import Path

__all__: list[str] = ["FileUtils", "FileUtilsError", "InvalidFileTypeError"]


class FileUtils:
    """Path helpers for the state database, log file and export snapshots."""

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Convert a user-supplied path to an absolute path.

        Expands environment variables and ``~``, and resolves relative paths against the
        current working directory.

        Args:
            path (str | Path): The input path (e.g. "~/fluenttab/$PROFILE.db").
            strict (bool): Raise if the path does not exist. Defaults to False.

        Returns:
            Path: The absolute path.
        """
        expanded: str = os.path.expandvars(str(path))
        user_expanded: Path = Path(expanded).expanduser()
        if user_expanded.is_absolute():
            return user_expanded.resolve(strict=strict)
        return (Path.cwd() / user_expanded).resolve(strict=strict)

    @staticmethod
    def prepare_file_path(path: str | Path) -> Path:
        """Resolve a file path and make sure its parent directory exists.

        Args:
            path (str | Path): Target file path.

        Returns:
            Path: The absolute file path.

        Raises:
            InvalidFileTypeError: If the path points to an existing directory.
        """
        resolved: Path = FileUtils.resolve_path(path)
        if resolved.is_dir():
            msg = f"Invalid file type (directory): {resolved}"
            raise InvalidFileTypeError(msg)
        resolved.parent.mkdir(parents=True, exist_ok=True)
        return resolved


class FileUtilsError(Exception):
    """Base exception for FileUtils errors."""


class InvalidFileTypeError(FileUtilsError):
    """The path does not point to a regular file."""
