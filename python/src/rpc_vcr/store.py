"""CassetteStore: persists cassettes as JSON files in a directory.

Each cassette lives in ``<directory>/<name>.<extension>``. Files hold a
``version`` and the ordered ``reqs`` list; see rpc_vcr.core.format.

Usage:
    store = CassetteStore("tests/cassettes")
    store.save(cassette)
    cassette = store.load("checkout")
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from rpc_vcr.core.cassette import Cassette
from rpc_vcr.core.format import CASSETTE_VERSION, CassetteFile
from rpc_vcr.errors import (
    CassetteFormatError,
    CassetteNotFoundError,
    UnsupportedVersionError,
)

logger = logging.getLogger(__name__)


class CassetteStore:
    """Loads and saves cassettes under a single directory.

    Attributes:
        directory: Directory holding the cassette files
        extension: File extension, without the leading dot
    """

    def __init__(self, directory: str | Path, extension: str = "json") -> None:
        """Initialize the store.

        Args:
            directory: Directory for cassette files (created on first save)
            extension: File extension (default "json")

        Raises:
            ValueError: If the extension is empty or starts with a dot
        """
        if not extension or extension.startswith("."):
            raise ValueError(f"Invalid cassette extension: {extension!r}")

        self.directory = Path(directory)
        self.extension = extension

    def path_for(self, name: str) -> Path:
        """Return the file path for a cassette name.

        Raises:
            ValueError: If the name is empty or would escape the directory
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError(f"Invalid cassette name: {name!r}")
        return self.directory / f"{name}.{self.extension}"

    def exists(self, name: str) -> bool:
        """Check whether a cassette has been persisted."""
        return self.path_for(name).is_file()

    def names(self) -> list[str]:
        """Sorted names of all persisted cassettes."""
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*.{self.extension}"))

    def load(self, name: str) -> Cassette:
        """Load a cassette from disk.

        Args:
            name: Cassette name

        Returns:
            A new Cassette holding the stored pairs in stored order

        Raises:
            CassetteNotFoundError: If no file exists for the name
            UnsupportedVersionError: If the stored version is not supported
            CassetteFormatError: If the file is partial or malformed
        """
        path = self.path_for(name)
        if not path.is_file():
            raise CassetteNotFoundError(name, path)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (IOError, OSError) as e:
            raise CassetteFormatError(f"Failed to read cassette {path}: {e}") from e
        except ValueError as e:
            raise CassetteFormatError(f"Invalid JSON in cassette {path}: {e}") from e

        self._check_version(data, path)

        try:
            document = CassetteFile.model_validate(data)
        except ValidationError as e:
            raise CassetteFormatError(f"Invalid cassette format in {path}: {e}") from e

        cassette = Cassette(name, pairs=document.reqs, version=document.version)
        logger.info(f"Loaded cassette '{name}' ({len(cassette)} pairs) from {path}")
        return cassette

    def save(self, cassette: Cassette) -> Path:
        """Write a cassette to disk, replacing any previous file.

        The document is written to a temporary file next to the target and
        renamed over it, so a crash never leaves a partial cassette behind.

        Args:
            cassette: Cassette to persist

        Returns:
            Path of the written file
        """
        path = self.path_for(cassette.name)
        document = CassetteFile(version=CASSETTE_VERSION, reqs=list(cassette.pairs()))

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(document.to_json())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info(f"Saved cassette '{cassette.name}' ({len(document.reqs)} pairs) to {path}")
        return path

    def delete(self, name: str) -> bool:
        """Delete one persisted cassette.

        Returns:
            True if a file was removed
        """
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Deleted cassette '{name}'")
        return True

    def delete_all(self) -> int:
        """Delete every persisted cassette in the directory.

        Returns:
            Number of files removed
        """
        if not self.directory.is_dir():
            return 0

        count = 0
        for path in self.directory.glob(f"*.{self.extension}"):
            if path.is_file():
                path.unlink()
                count += 1

        logger.info(f"Deleted {count} cassette(s) from {self.directory}")
        return count

    @staticmethod
    def _check_version(data: Any, path: Path) -> None:
        if not isinstance(data, dict):
            raise CassetteFormatError(f"Cassette {path} must contain a JSON object")
        if "version" not in data:
            raise CassetteFormatError(f"Cassette {path} has no 'version' field")

        version = data["version"]
        if isinstance(version, bool) or version != CASSETTE_VERSION:
            raise UnsupportedVersionError(version, path)

    def __repr__(self) -> str:
        return f"CassetteStore(directory={str(self.directory)!r}, extension={self.extension!r})"


__all__ = ["CassetteStore"]
