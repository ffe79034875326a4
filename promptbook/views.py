"""
Read-only views over a built Catalog.

None of these touch the filesystem; they only project the Catalog that was
already validated by the builder. Ordering always comes from iter_content,
the same pre-order traversal used by the archive bundler.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import NotFoundError
from .models import SKILL, Catalog, ContentNode, iter_content, reference_path

DEFAULT_EXPORT_TITLE = "AI Prompts for Coding: Full Content"

SOURCE_OPEN = re.compile(r'^<source ([^>\n]*)>\n', re.MULTILINE)
SOURCE_ATTR = re.compile(r'(\w+)="([^"]*)"')
SOURCE_CLOSE = "\n</source>"


@dataclass(frozen=True)
class ExportedDocument:
    """One document recovered from an aggregated export."""
    slug: str
    category: str
    url: str
    body: str


def catalog_listing(catalog: Catalog) -> List[Dict]:
    """Summaries of every node, in navigation (pre-order) order."""
    return [node.to_summary() for node in iter_content(catalog.tree)]


def categories(catalog: Catalog, kind: Optional[str] = None) -> List[str]:
    """Sorted distinct category paths, optionally for one kind."""
    return sorted({node.category for node in catalog.nodes(kind)})


def get_content(catalog: Optional[Catalog], slug: str) -> ContentNode:
    """Look up a node by slug.

    Raises:
        NotFoundError: If the slug is unknown (or there is no catalog)
    """
    node = catalog.get(slug) if catalog is not None else None
    if node is None:
        raise NotFoundError(slug)
    return node


def get_skill(catalog: Optional[Catalog], slug: str) -> ContentNode:
    node = catalog.get(slug) if catalog is not None else None
    if node is None or node.kind != SKILL:
        raise NotFoundError(slug, what="Skill")
    return node


def skill_listing(catalog: Catalog) -> List[Dict]:
    return [
        {
            **node.to_summary(),
            "name": node.name or node.slug.rsplit("/", 1)[-1],
            "download_url": f"/api/skills/{node.slug}/download",
            "references": [ref.slug for ref in node.references],
        }
        for node in catalog.nodes(SKILL)
    ]


def assemble_skill_content(skill: ContentNode) -> str:
    """Skill body followed by each of its references as a section.

    The result is meant for pasting into a chat as one document:

        <SKILL.md body>

        ---

        ## Reference: checklist

        <references/checklist.md>
    """
    if not skill.references:
        return skill.body.strip()

    sections = [skill.body.strip(), ""]
    for reference in skill.references:
        name = reference_path(skill, reference)
        name = str(name.relative_to("references").with_suffix(""))
        sections.extend(["---", "", f"## Reference: {name}", "", reference.source.strip(), ""])

    return "\n".join(sections).strip()


def aggregated_export(catalog: Catalog, title: str = DEFAULT_EXPORT_TITLE) -> str:
    """Concatenate every node's body into one text document.

    Each body is wrapped in a <source> block carrying its slug, category and
    length in characters, so the export can be split back exactly with
    split_aggregated_export even when a body contains "</source>".
    """
    lines = [
        f"# {title}",
        "",
        "> All content concatenated for LLM ingestion.",
        "> See /api/catalog for the JSON catalog.",
        "",
    ]

    for node in iter_content(catalog.tree):
        lines.append(
            f'<source url="{_attr(node.url)}" category="{_attr(node.category)}" '
            f'slug="{_attr(node.slug)}" length="{len(node.body)}">'
        )
        lines.append(node.body)
        lines.append("</source>")
        lines.append("")

    return "\n".join(lines)


def split_aggregated_export(text: str) -> List[ExportedDocument]:
    """Split an aggregated export back into its documents.

    Raises:
        ValueError: If a block is truncated or its closing tag is missing
    """
    documents = []
    position = 0

    while True:
        match = SOURCE_OPEN.search(text, position)
        if match is None:
            break

        attrs = {k: html.unescape(v) for k, v in SOURCE_ATTR.findall(match.group(1))}
        try:
            length = int(attrs["length"])
            slug = attrs["slug"]
        except (KeyError, ValueError) as exc:
            raise ValueError(f"invalid source header: {match.group(0).strip()}") from exc

        start = match.end()
        end = start + length
        if not text.startswith(SOURCE_CLOSE, end):
            raise ValueError(f"source block for '{slug}' is not closed after {length} characters")

        documents.append(ExportedDocument(
            slug=slug,
            category=attrs.get("category", ""),
            url=attrs.get("url", ""),
            body=text[start:end],
        ))
        position = end + len(SOURCE_CLOSE)

    return documents


def _attr(value: str) -> str:
    return html.escape(value, quote=True)
