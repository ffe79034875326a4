"""
PromptBook: content catalog for a library of AI prompts and skills.

This package provides functionality for:
- Scanning a nested content directory of .md/.mdx files
- Parsing frontmatter and heading metadata
- Ordering navigation with per-directory _meta.json files
- Building an immutable, slug-addressed catalog
- Serving listings, raw content, an aggregated export and skill archives

Content structure:
    content/
        _meta.json              - order and titles of top-level sections
        review/
            pr-review.mdx       - prompt, slug "review/pr-review"
        skills/
            pr-review/
                SKILL.md        - skill, slug "skills/pr-review"
                references/
                    checklist.md

Usage:
    from promptbook import CatalogService

    service = CatalogService.for_directory("content")
    service.store.load()

    listing = service.get_catalog_listing()
    prompt = service.get_content("review/pr-review")
    export = service.get_aggregated_export()
    manifest = service.get_archive_manifest("skills/pr-review")
"""

from .archive import ALL, ManifestEntry, archive_manifest, package_zip
from .builder import CatalogBuilder, build_catalog, slug_for
from .errors import (
    CatalogUnavailableError,
    DuplicateSlugError,
    NotFoundError,
    PromptBookError,
    ScanError,
    ValidationError,
)
from .metadata_parser import decode_metadata, parse_document
from .models import Catalog, CategoryNode, ContentNode, Separator, iter_content
from .ordering import OrderingConfig, OrderingEntry, resolve_order
from .scanner import scan_content_tree
from .service import CatalogService
from .store import CatalogStore

__all__ = [
    "ALL",
    "ManifestEntry",
    "archive_manifest",
    "package_zip",
    "CatalogBuilder",
    "build_catalog",
    "slug_for",
    "CatalogUnavailableError",
    "DuplicateSlugError",
    "NotFoundError",
    "PromptBookError",
    "ScanError",
    "ValidationError",
    "decode_metadata",
    "parse_document",
    "Catalog",
    "CategoryNode",
    "ContentNode",
    "Separator",
    "iter_content",
    "OrderingConfig",
    "OrderingEntry",
    "resolve_order",
    "scan_content_tree",
    "CatalogService",
    "CatalogStore",
]

__version__ = "1.0.0"
