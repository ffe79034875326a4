"""Tests for CatalogService operations."""

import io
import zipfile

import pytest

from promptbook.archive import ALL, bundle_manifest, skill_manifest
from promptbook.errors import NotFoundError
from promptbook.models import Catalog
from promptbook.service import CatalogService


class SwappingStore:
    """Store that publishes an empty catalog after the first read."""

    def __init__(self, first):
        self.reads = [first]

    @property
    def catalog(self):
        current = self.reads[-1]
        self.reads.append(Catalog.empty())
        return current


@pytest.fixture
def service(content_dir):
    service = CatalogService.for_directory(content_dir)
    service.store.load()
    return service


class TestGetContent:
    def test_body_and_metadata(self, service):
        content = service.get_content("debug/failing-test")
        assert content["title"] == "Failing Test"
        assert content["description"] == "Find the root cause of a failing test."
        assert content["body"] == "# Failing Test\nFind the root cause of a failing test.\n"

    def test_unknown_slug(self, service):
        with pytest.raises(NotFoundError):
            service.get_content("nonexistent-slug")


class TestArchiveManifest:
    def test_single_skill(self, service):
        manifest = service.get_archive_manifest("skills/code-review")
        assert manifest == skill_manifest(service.catalog, "skills/code-review")
        assert manifest[0].path == "SKILL.md"

    def test_all_skills(self, service):
        assert service.get_archive_manifest(ALL) == bundle_manifest(service.catalog)
        assert service.get_archive_manifest() == service.get_archive_manifest(ALL)

    def test_not_a_skill(self, service):
        with pytest.raises(NotFoundError):
            service.get_archive_manifest("review/pr-review")


class TestSkillDownload:
    def test_filename_and_bytes(self, service):
        filename, data = service.get_skill_download("skills/code-review")
        assert filename == "code-review.skill"
        assert data == service.get_archive_bytes("skills/code-review")

    def test_reads_one_catalog_generation(self, service):
        swapping = CatalogService(SwappingStore(service.catalog))

        filename, data = swapping.get_skill_download("skills/tdd")

        assert filename == "tdd.skill"
        assert zipfile.ZipFile(io.BytesIO(data)).namelist() == ["tdd/SKILL.md"]

    def test_unknown_skill(self, service):
        with pytest.raises(NotFoundError):
            service.get_skill_download("skills/ghost")
