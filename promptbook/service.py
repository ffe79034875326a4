"""
CatalogService: the operations offered to the HTTP layer and the CLI.

Every call reads the catalog currently published by the CatalogStore once,
so a single call never mixes two catalog generations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from . import archive, views
from .archive import ALL, Manifest
from .builder import CatalogBuilder
from .config import Settings
from .models import PROMPT, Catalog
from .store import CatalogStore


class CatalogService:
    """Catalog queries backed by a CatalogStore."""

    def __init__(self, store: CatalogStore, site_title: str = views.DEFAULT_EXPORT_TITLE):
        self.store = store
        self.site_title = site_title

    @classmethod
    def from_settings(cls, settings: Settings) -> "CatalogService":
        builder = CatalogBuilder(settings.content_dir, workers=settings.build_workers)
        return cls(CatalogStore(builder.build), site_title=f"{settings.site_title}: Full Content")

    @classmethod
    def for_directory(cls, content_dir: Union[str, Path], workers: int = 1) -> "CatalogService":
        return cls(CatalogStore(CatalogBuilder(content_dir, workers=workers).build))

    @property
    def catalog(self) -> Catalog:
        return self.store.catalog

    def get_catalog_listing(self) -> List[Dict]:
        return views.catalog_listing(self.catalog)

    def get_prompt_listing(self) -> List[Dict]:
        return [item for item in self.get_catalog_listing() if item["kind"] == PROMPT]

    def get_categories(self, kind: Optional[str] = None) -> List[str]:
        return views.categories(self.catalog, kind)

    def get_content(self, slug: str) -> Dict:
        """Title, description and raw body of one node.

        Raises:
            NotFoundError: If the slug is unknown
        """
        return views.get_content(self.catalog, slug).to_dict()

    def get_aggregated_export(self) -> str:
        return views.aggregated_export(self.catalog, title=self.site_title)

    def get_archive_manifest(self, target: str = ALL) -> Manifest:
        return archive.archive_manifest(self.catalog, target)

    def get_archive_bytes(self, target: str = ALL) -> bytes:
        catalog = self.catalog
        if target == ALL:
            return archive.package_bundle(catalog)
        return archive.package_skill(catalog, target)

    def get_skill_download(self, slug: str) -> Tuple[str, bytes]:
        """(filename, bytes) of one skill's .skill archive.

        Raises:
            NotFoundError: If slug is not a skill
        """
        catalog = self.catalog
        skill = views.get_skill(catalog, slug)
        filename = f"{archive.archive_name(skill)}{archive.ARCHIVE_SUFFIX}"
        return filename, archive.package_skill(catalog, skill.slug)

    def get_skill_listing(self) -> List[Dict]:
        return views.skill_listing(self.catalog)

    def get_skill_content(self, slug: str) -> Dict:
        """Skill summary plus SKILL.md body with its references inlined."""
        catalog = self.catalog
        skill = views.get_skill(catalog, slug)
        summary = next(s for s in views.skill_listing(catalog) if s["slug"] == skill.slug)
        return {**summary, "content": views.assemble_skill_content(skill)}

    def get_all_skills_with_content(self) -> List[Dict]:
        catalog = self.catalog
        return [
            {**summary, "content": views.assemble_skill_content(catalog.index[summary["slug"]])}
            for summary in views.skill_listing(catalog)
        ]

    def stats(self) -> Dict:
        return self.catalog.stats()
