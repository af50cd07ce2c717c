"""Export feed access — a folder of flat files or the ZIP archive it ships as.

The feed is read-only here. Listing is cheap; content is decoded one file
at a time so a single unreadable file can be skipped by the caller.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol


class SourceReadError(OSError):
    """Raised when one export file cannot be read or decoded."""


@dataclass(frozen=True)
class SourceFile:
    name: str
    raw_content: str


class ExportSource(Protocol):
    def list_names(self) -> list[str]: ...

    def read(self, name: str) -> SourceFile: ...


def _decode(name: str, data: bytes, encoding: str) -> str:
    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise SourceReadError(f"Cannot decode '{name}' as {encoding}: {exc}") from exc
    return text.removeprefix("\ufeff")


class FolderSource:
    """Top-level files of a directory, sorted by name.

    Hidden files and sub-directories are ignored.
    """

    def __init__(self, directory: Path, encoding: str = "utf-8") -> None:
        self.directory = directory
        self.encoding = encoding

    def list_names(self) -> list[str]:
        return sorted(
            entry.name
            for entry in self.directory.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )

    def read(self, name: str) -> SourceFile:
        try:
            data = (self.directory / name).read_bytes()
        except OSError as exc:
            raise SourceReadError(f"Cannot read '{name}': {exc}") from exc
        return SourceFile(name=name, raw_content=_decode(name, data, self.encoding))


class ZipSource:
    """Members of a ZIP export, addressed by their base name.

    Exports are sometimes zipped with an enclosing folder; the folder part
    of each member path is dropped.
    """

    def __init__(self, archive: Path, encoding: str = "utf-8") -> None:
        self.archive = archive
        self.encoding = encoding
        self._members: dict[str, str] = {}
        try:
            with zipfile.ZipFile(archive) as zf:
                for info in zf.infolist():
                    if info.is_dir():
                        continue
                    base = PurePosixPath(info.filename).name
                    if base and not base.startswith("."):
                        self._members.setdefault(base, info.filename)
        except (OSError, zipfile.BadZipFile) as exc:
            raise SourceReadError(f"Cannot open export archive '{archive}': {exc}") from exc

    def list_names(self) -> list[str]:
        return sorted(self._members)

    def read(self, name: str) -> SourceFile:
        member = self._members.get(name)
        if member is None:
            raise SourceReadError(f"'{name}' is not in archive '{self.archive}'")
        try:
            with zipfile.ZipFile(self.archive) as zf:
                data = zf.read(member)
        except (OSError, zipfile.BadZipFile, RuntimeError) as exc:
            raise SourceReadError(f"Cannot read '{name}' from '{self.archive}': {exc}") from exc
        return SourceFile(name=name, raw_content=_decode(name, data, self.encoding))


def open_source(location: str | Path, encoding: str = "utf-8") -> FolderSource | ZipSource:
    """Return the export source at *location* (directory or .zip file).

    Raises:
        FileNotFoundError: *location* does not exist.
        SourceReadError: *location* is a file that is not a readable ZIP archive.
    """
    path = Path(location).expanduser()
    if path.is_dir():
        return FolderSource(path, encoding=encoding)
    if path.is_file():
        return ZipSource(path, encoding=encoding)
    raise FileNotFoundError(f"Export location not found: '{location}'")
