"""Tests for FastAPI endpoints."""

import io
import json
import zipfile

import pytest
from fastapi.testclient import TestClient

from promptbook.api import create_app
from promptbook.config import Settings
from promptbook.errors import ValidationError
from promptbook.service import CatalogService


@pytest.fixture
def service(content_dir):
    return CatalogService.for_directory(content_dir)


@pytest.fixture
def client(service):
    return TestClient(create_app(service, settings=Settings()))


class TestStartup:
    def test_invalid_content_refuses_to_start(self, make_tree):
        root = make_tree({"a.md": "no title\n"})
        with pytest.raises(ValidationError):
            create_app(CatalogService.for_directory(root), settings=Settings())

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["catalog"]["total"] == 8
        assert body["last_error"] is None


class TestCatalogEndpoints:
    def test_catalog_listing(self, client, expected_slugs):
        body = client.get("/api/catalog").json()
        assert body["total"] == len(expected_slugs)
        assert [item["slug"] for item in body["items"]] == expected_slugs

    def test_prompts_listing(self, client):
        body = client.get("/api/prompts").json()
        assert body["total"] == 4
        assert body["categories"] == ["debug", "language-specific/python", "review"]
        assert all(p["kind"] == "prompt" for p in body["prompts"])

    def test_content_as_markdown(self, client, content_dir):
        response = client.get("/api/content/review/pr-review")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/markdown")
        assert response.headers["cache-control"] == "public, max-age=3600, s-maxage=3600"
        assert response.text == (content_dir / "review/pr-review.mdx").read_text()

    def test_content_as_json(self, client):
        response = client.get(
            "/api/content/review/pr-review", headers={"Accept": "application/json"}
        )
        body = response.json()
        assert body["title"] == "PR Review"
        assert body["description"] == "Review a pull request."
        assert body["content"].startswith("# PR Review")
        assert body["body"] == body["content"]

    def test_unknown_content_is_404(self, client):
        response = client.get("/api/content/nonexistent-slug")
        assert response.status_code == 404
        assert "nonexistent-slug" in response.json()["detail"]

    def test_llms_full(self, client):
        response = client.get("/llms-full.txt")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text.startswith("# AI Prompts for Coding: Full Content")
        assert 'slug="skills/code-review/references/style"' in response.text


class TestSkillEndpoints:
    def test_skill_listing(self, client):
        body = client.get("/api/skills").json()
        assert body["total"] == 2
        assert body["skills"][0]["slug"] == "skills/code-review"

    def test_all_skills_with_content(self, client):
        body = client.get("/api/skills/all").json()
        assert [s["slug"] for s in body["skills"]] == ["skills/code-review", "skills/tdd"]
        assert "## Reference: checklist" in body["skills"][0]["content"]

    def test_skill_markdown_and_json(self, client):
        markdown = client.get("/api/skills/skills/code-review")
        assert markdown.headers["content-type"].startswith("text/markdown")
        assert markdown.text.startswith("# Code Review")

        as_json = client.get("/api/skills/skills/tdd", headers={"Accept": "application/json"}).json()
        assert as_json["name"] == "tdd"
        assert as_json["content"] == "# TDD"

    def test_prompt_is_not_a_skill(self, client):
        assert client.get("/api/skills/review/pr-review").status_code == 404

    def test_skill_download(self, client):
        response = client.get("/api/skills/skills/code-review/download")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert response.headers["content-disposition"] == 'attachment; filename="code-review.skill"'
        names = zipfile.ZipFile(io.BytesIO(response.content)).namelist()
        assert names == [
            "code-review/SKILL.md",
            "code-review/references/checklist.md",
            "code-review/references/style.md",
        ]

    def test_unknown_skill_download_is_404(self, client):
        assert client.get("/api/skills/skills/ghost/download").status_code == 404

    def test_all_skills_download(self, client):
        response = client.get("/api/skills/all/download")
        assert response.status_code == 200
        assert 'filename="all-skills.zip"' in response.headers["content-disposition"]
        names = zipfile.ZipFile(io.BytesIO(response.content)).namelist()
        assert names[0] == "skills/code-review/SKILL.md"

    def test_all_skills_download_without_skills(self, make_tree):
        root = make_tree({"a.md": "# A\n"})
        client = TestClient(create_app(CatalogService.for_directory(root), settings=Settings()))
        assert client.get("/api/skills/all/download").status_code == 404


class TestRebuildEndpoint:
    def test_rebuild_picks_up_new_content(self, client, content_dir):
        (content_dir / "debug" / "flaky.mdx").write_text("# Flaky Test\nStabilise it.\n")
        response = client.post("/api/catalog/rebuild")
        assert response.status_code == 200
        assert response.json()["rebuilt"] is True
        assert client.get("/api/content/debug/flaky").status_code == 200

    def test_failed_rebuild_keeps_serving(self, client, content_dir):
        (content_dir / "_meta.json").write_text(json.dumps(["ghost"]))
        response = client.post("/api/catalog/rebuild")
        assert response.status_code == 409
        assert "ghost" in response.json()["error"]

        assert client.get("/api/content/review/pr-review").status_code == 200
        assert client.get("/health").json()["last_error"] is not None
