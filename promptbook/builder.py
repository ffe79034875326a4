"""
Catalog builder for PromptBook.

Combines the scanned content tree, parsed metadata and ordering config into
an immutable Catalog:
- Every .md/.mdx file outside a skill directory becomes a prompt
- A directory holding SKILL.md becomes a single skill node
- Files under a skill's references/ directory become its reference nodes
- Directories become categories, children in resolved order

Any invalid file, bad ordering entry or slug collision fails the whole build.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple, Union

from .errors import DuplicateSlugError, ScanError
from .metadata_parser import Err, ParsedDocument, ParseResult, decode_metadata
from .models import (
    PROMPT,
    REFERENCE,
    SKILL,
    Catalog,
    CategoryNode,
    ContentNode,
    Separator,
    title_from_identifier,
)
from .ordering import load_ordering_config, resolve_order
from .scanner import SKILL_FILE, ScannedDirectory, ScannedFile, scan_content_tree

logger = logging.getLogger(__name__)

REFERENCES_DIR = "references"
DEFAULT_WORKERS = 4


def slug_for(relative: Union[str, PurePosixPath]) -> str:
    """Derive a slug from a path relative to the content root.

    Example:
        >>> slug_for("Review/PR-Review.mdx")
        'review/pr-review'
    """
    relative = PurePosixPath(relative)
    parts = list(relative.parts)
    if parts and relative.suffix:
        parts[-1] = relative.stem
    return "/".join(part.lower() for part in parts)


class CatalogBuilder:
    """Builds a Catalog from a content directory."""

    def __init__(self, content_root: Union[str, Path], workers: int = DEFAULT_WORKERS):
        """Initialize catalog builder.

        Args:
            content_root: Root of the content tree (e.g., ./content)
            workers: Threads used to read and parse files (1 = sequential)
        """
        self.content_root = Path(content_root)
        self.workers = max(1, int(workers))
        self._documents: Dict[Path, ParsedDocument] = {}
        self._slugs: Dict[str, str] = {}

    def build(self) -> Catalog:
        """Scan, parse, order and assemble a new Catalog.

        Returns:
            The built Catalog

        Raises:
            ScanError: If the content root cannot be scanned
            ValidationError: If a file or ordering config is invalid
            DuplicateSlugError: If two files share a slug
        """
        self._documents = {}
        self._slugs = {}

        scanned = scan_content_tree(self.content_root)
        self._parse_all(self._collect_files(scanned, top_level=True))

        tree = self._build_category(scanned, identifier="", title="")
        catalog = Catalog(tree=tree, root=self.content_root)

        stats = catalog.stats()
        logger.info(
            f"Built catalog from {self.content_root}: {stats['total']} nodes "
            f"({stats['by_kind']})"
        )
        return catalog

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _collect_files(
        self, directory: ScannedDirectory, top_level: bool = False
    ) -> List[ScannedFile]:
        """Every file that will become a ContentNode, in scan order."""
        if directory.is_skill and not top_level:
            files = [f for f in directory.files if f.name == SKILL_FILE]
            references = self._references_dir(directory)
            if references is not None:
                for nested in references.walk():
                    files.extend(e for e in _with_index(nested) if isinstance(e, ScannedFile))
            return files

        files = list(directory.files)
        for child in directory.directories:
            files.extend(self._collect_files(child))
        return files

    def _parse_all(self, files: List[ScannedFile]) -> None:
        if self.workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                results = list(pool.map(_read_and_decode, files))
        else:
            results = [_read_and_decode(f) for f in files]

        errors = [r.error for r in results if isinstance(r, Err)]
        if errors:
            for extra in errors[1:]:
                logger.error(f"Invalid content: {extra}")
            raise errors[0]

        for scanned, result in zip(files, results):
            self._documents[scanned.path] = result.value

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def _build_category(
        self, directory: ScannedDirectory, identifier: str, title: str
    ) -> CategoryNode:
        path = directory.relative.parts
        config = load_ordering_config(directory.config_path)

        children = []
        for resolved in resolve_order(_with_index(directory), config, key=lambda c: c.identifier):
            item = resolved.item

            if resolved.separator:
                children.append(Separator(
                    identifier=resolved.identifier,
                    title=resolved.title or resolved.identifier,
                ))
            elif item is directory.index_file:
                continue
            elif isinstance(item, ScannedDirectory) and item.is_skill:
                children.append(self._build_skill(item, resolved.title))
            elif isinstance(item, ScannedDirectory):
                children.append(self._build_category(
                    item,
                    identifier=item.identifier,
                    title=resolved.title or title_from_identifier(item.identifier),
                ))
            else:
                children.append(self._build_node(item, PROMPT, title=resolved.title))

        return CategoryNode(
            identifier=identifier,
            title=title,
            path=tuple(path),
            children=tuple(children),
        )

    def _build_skill(self, directory: ScannedDirectory, title: Optional[str]) -> ContentNode:
        skill_file = next(f for f in directory.files if f.name == SKILL_FILE)
        references_dir = self._references_dir(directory)

        # Only validated: a skill is one node, its own children are not ordered.
        config = load_ordering_config(directory.config_path)
        resolve_order(_with_index(directory), config, key=lambda c: c.identifier)

        for entry in _with_index(directory):
            if entry is skill_file or entry is references_dir:
                continue
            logger.warning(
                f"Ignoring {entry.relative} in skill '{directory.relative}': "
                f"only {SKILL_FILE} and {REFERENCES_DIR}/ are published"
            )

        references: Tuple[ContentNode, ...] = ()
        if references_dir is not None:
            references = tuple(self._build_references(references_dir))

        return self._build_node(
            skill_file,
            SKILL,
            title=title,
            slug=slug_for(directory.relative),
            category_path=directory.relative.parent.parts,
            references=references,
        )

    def _build_references(self, directory: ScannedDirectory) -> List[ContentNode]:
        """Flatten a references tree into nodes, pre-order, resolved order.

        index.md here is an ordinary reference, not a landing page.
        """
        config = load_ordering_config(directory.config_path)
        nodes = []
        for resolved in resolve_order(_with_index(directory), config, key=lambda c: c.identifier):
            if resolved.separator:
                continue
            if isinstance(resolved.item, ScannedDirectory):
                nodes.extend(self._build_references(resolved.item))
            else:
                nodes.append(self._build_node(resolved.item, REFERENCE, title=resolved.title))
        return nodes

    def _build_node(
        self,
        scanned: ScannedFile,
        kind: str,
        title: Optional[str] = None,
        slug: Optional[str] = None,
        category_path: Optional[Tuple[str, ...]] = None,
        references: Tuple[ContentNode, ...] = (),
    ) -> ContentNode:
        document = self._documents[scanned.path]
        slug = slug or slug_for(scanned.relative)
        source_path = str(scanned.relative)

        if slug in self._slugs:
            raise DuplicateSlugError(slug, self._slugs[slug], source_path)
        self._slugs[slug] = source_path

        if category_path is None:
            category_path = scanned.relative.parent.parts

        return ContentNode(
            slug=slug,
            category_path=tuple(p for p in category_path if p != "."),
            title=title or document.title,
            description=document.description,
            name=document.name,
            body=document.body,
            source=document.source,
            source_path=source_path,
            kind=kind,
            references=references,
        )

    @staticmethod
    def _references_dir(directory: ScannedDirectory) -> Optional[ScannedDirectory]:
        for child in directory.directories:
            if child.identifier == REFERENCES_DIR:
                return child
        return None


def build_catalog(content_root: Union[str, Path], workers: int = DEFAULT_WORKERS) -> Catalog:
    """Convenience wrapper around CatalogBuilder(content_root, workers).build()."""
    return CatalogBuilder(content_root, workers=workers).build()


def _with_index(directory: ScannedDirectory) -> List[Union[ScannedDirectory, ScannedFile]]:
    """Entries of directory with its index file (if any) first."""
    entries = list(directory.entries)
    if directory.index_file is not None:
        entries.insert(0, directory.index_file)
    return entries


def _read_and_decode(scanned: ScannedFile) -> ParseResult:
    try:
        raw = scanned.path.read_bytes()
    except OSError as exc:
        raise ScanError(scanned.path, exc.strerror or str(exc)) from exc
    return decode_metadata(raw, scanned.relative)
