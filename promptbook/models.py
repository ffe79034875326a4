"""
Catalog data model.

ContentNode   - a prompt, skill or reference document
CategoryNode  - a directory grouping nodes, in resolved order
Separator     - a navigation heading declared in ordering config
Catalog       - the tree plus a slug index, immutable once built
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

PROMPT = "prompt"
SKILL = "skill"
REFERENCE = "reference"
KINDS = (PROMPT, SKILL, REFERENCE)


@dataclass(frozen=True)
class ContentNode:
    """A leaf content document."""
    slug: str
    category_path: Tuple[str, ...]
    title: str
    body: str
    source: str
    source_path: str
    kind: str = PROMPT
    description: str = ""
    name: Optional[str] = None
    references: Tuple["ContentNode", ...] = ()

    @property
    def category(self) -> str:
        return "/".join(self.category_path)

    @property
    def url(self) -> str:
        return f"/{self.slug}"

    @property
    def api_url(self) -> str:
        return f"/api/content/{self.slug}"

    def to_summary(self) -> Dict:
        return {
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "category_path": list(self.category_path),
            "kind": self.kind,
            "url": self.url,
            "api_url": self.api_url,
        }

    def to_dict(self) -> Dict:
        """Summary plus the raw body, under both "body" and "content".

        "content" is the key the site's frontend reads.
        """
        return {**self.to_summary(), "name": self.name, "body": self.body, "content": self.body}


@dataclass(frozen=True)
class Separator:
    """Navigation heading with no content of its own."""
    identifier: str
    title: str


@dataclass(frozen=True)
class CategoryNode:
    """A directory of content, children in resolved order."""
    identifier: str
    title: str
    path: Tuple[str, ...] = ()
    children: Tuple[Union["CategoryNode", ContentNode, Separator], ...] = ()

    @property
    def categories(self) -> Tuple["CategoryNode", ...]:
        return tuple(c for c in self.children if isinstance(c, CategoryNode))


def title_from_identifier(identifier: str) -> str:
    """Derive a display title from a directory name.

    Example:
        >>> title_from_identifier("language-specific")
        'Language Specific'
    """
    words = identifier.replace("_", " ").replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words) or identifier


def reference_path(skill: ContentNode, reference: ContentNode) -> PurePosixPath:
    """Path of a reference relative to its skill directory.

    Example: "references/checklist.md" for
    skills/pr-review/references/checklist.md.
    """
    skill_dir = PurePosixPath(skill.source_path).parent
    return PurePosixPath(reference.source_path).relative_to(skill_dir)


def iter_content(node: CategoryNode) -> Iterator[ContentNode]:
    """Pre-order traversal of every ContentNode under node.

    A skill is yielded before its references. Every view that needs an order
    uses this function, so listings, exports and archives always agree.
    """
    for child in node.children:
        if isinstance(child, CategoryNode):
            yield from iter_content(child)
        elif isinstance(child, ContentNode):
            yield child
            yield from child.references


@dataclass(frozen=True)
class Catalog:
    """Immutable, validated catalog: navigation tree plus slug index.

    The index is derived from the tree at construction time, so the two
    always describe the same set of nodes.
    """
    tree: CategoryNode
    root: Optional[Path] = None
    built_at: datetime = field(default_factory=datetime.now)
    index: Mapping[str, ContentNode] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        index = {}
        for node in iter_content(self.tree):
            if node.slug in index:
                # The builder reports duplicates with both source paths first.
                raise ValueError(f"duplicate slug in tree: {node.slug}")
            index[node.slug] = node
        object.__setattr__(self, "index", MappingProxyType(index))

    @classmethod
    def empty(cls, root: Optional[Path] = None) -> "Catalog":
        return cls(tree=CategoryNode(identifier="", title=""), root=root)

    def __len__(self) -> int:
        return len(self.index)

    def __contains__(self, slug: str) -> bool:
        return slug in self.index

    def get(self, slug: str) -> Optional[ContentNode]:
        return self.index.get(slug)

    def nodes(self, kind: Optional[str] = None) -> Iterator[ContentNode]:
        for node in iter_content(self.tree):
            if kind is None or node.kind == kind:
                yield node

    def stats(self) -> Dict:
        """Counts by kind and by top-level category."""
        by_kind = {kind: 0 for kind in KINDS}
        by_category: Dict[str, int] = {}
        for node in self.nodes():
            by_kind[node.kind] += 1
            top = node.category_path[0] if node.category_path else ""
            by_category[top] = by_category.get(top, 0) + 1

        return {
            "total": len(self.index),
            "by_kind": by_kind,
            "by_category": by_category,
            "built_at": self.built_at.isoformat(),
            "root": str(self.root) if self.root else None,
        }
