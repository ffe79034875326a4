"""
Content tree scanner for PromptBook.

Walks the content directory and records what is on disk, without reading or
interpreting any file. The result is a tree of ScannedDirectory/ScannedFile
records which the builder combines with parsed metadata and ordering config.

Rules:
1. Only .md and .mdx files are content; everything else is ignored
2. Symlinks are never followed or listed
3. Names starting with "." or "_" are hidden (system dirs, _meta.json)
4. Entries are listed in name order so scans are reproducible
5. index.md / index.mdx is a directory's landing page, not a content file
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple, Union

from .errors import ScanError

logger = logging.getLogger(__name__)

CONTENT_EXTENSIONS = (".md", ".mdx")
HIDDEN_PREFIXES = (".", "_")
SKILL_FILE = "SKILL.md"
INDEX_STEM = "index"
ORDERING_FILE = "_meta.json"


@dataclass(frozen=True)
class ScannedFile:
    """A content file found on disk."""
    path: Path
    relative: PurePosixPath

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def identifier(self) -> str:
        """Identifier used by ordering config: the filename without extension."""
        return self.path.stem


@dataclass(frozen=True)
class ScannedDirectory:
    """A directory found on disk, with its visible children in name order."""
    path: Path
    relative: PurePosixPath
    entries: Tuple[Union["ScannedDirectory", ScannedFile], ...] = ()
    index_file: Optional[ScannedFile] = None
    config_path: Optional[Path] = None

    @property
    def identifier(self) -> str:
        return self.path.name

    @property
    def files(self) -> Tuple[ScannedFile, ...]:
        return tuple(e for e in self.entries if isinstance(e, ScannedFile))

    @property
    def directories(self) -> Tuple["ScannedDirectory", ...]:
        return tuple(e for e in self.entries if isinstance(e, ScannedDirectory))

    @property
    def is_skill(self) -> bool:
        return any(f.name == SKILL_FILE for f in self.files)

    def child_identifiers(self) -> Tuple[str, ...]:
        """Identifiers of every orderable child, in scan order."""
        identifiers = [entry.identifier for entry in self.entries]
        if self.index_file is not None:
            identifiers.insert(0, INDEX_STEM)
        return tuple(identifiers)

    def walk(self):
        """Yield this directory and every nested directory, pre-order."""
        yield self
        for directory in self.directories:
            yield from directory.walk()


def is_hidden(name: str) -> bool:
    return name.startswith(HIDDEN_PREFIXES)


def is_content_file(path: Path) -> bool:
    return path.suffix.lower() in CONTENT_EXTENSIONS


def scan_content_tree(root: Union[str, Path]) -> ScannedDirectory:
    """Scan the content root recursively.

    Args:
        root: Content root directory

    Returns:
        ScannedDirectory for the root (relative path ".")

    Raises:
        ScanError: If the root is missing, not a directory or unreadable
    """
    root = Path(root)
    if not root.exists():
        raise ScanError(root, "directory does not exist")
    if not root.is_dir():
        raise ScanError(root, "not a directory")

    tree = _scan_directory(root, PurePosixPath("."))
    logger.debug(f"Scanned {root}: {sum(len(d.files) for d in tree.walk())} content files")
    return tree


def _scan_directory(directory: Path, relative: PurePosixPath) -> ScannedDirectory:
    try:
        children = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise ScanError(directory, exc.strerror or str(exc)) from exc

    entries = []
    index_file = None
    config_path = None

    for child in children:
        if child.is_symlink():
            continue

        if child.name == ORDERING_FILE and child.is_file():
            config_path = child
            continue

        if is_hidden(child.name):
            continue

        child_relative = relative / child.name

        if child.is_dir():
            entries.append(_scan_directory(child, child_relative))
        elif child.is_file() and is_content_file(child):
            scanned = ScannedFile(path=child, relative=child_relative)
            if child.stem == INDEX_STEM:
                index_file = scanned
            else:
                entries.append(scanned)

    return ScannedDirectory(
        path=directory,
        relative=relative,
        entries=tuple(entries),
        index_file=index_file,
        config_path=config_path,
    )
