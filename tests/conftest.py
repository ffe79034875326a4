"""Pytest configuration and fixtures."""

import json
import os

import pytest

from promptbook.builder import CatalogBuilder

SKILL_MD = """---
name: code-review
description: Structured code review workflow
---
# Code Review

Walk through the diff in three passes.
"""

SAMPLE_CONTENT = {
    "_meta.json": json.dumps({
        "index": "Home",
        "---general": {"type": "separator", "title": "General Purpose"},
        "review": "Review",
        "debug": "Debug",
        "skills": "Skills",
    }),
    "index.mdx": "# Home\nWelcome to the library.\n",
    "review/pr-review.mdx": "# PR Review\nReview a pull request.\n\n## Steps\n\n1. Read the diff\n",
    "review/security-review.mdx": "# Security Review\nLook for vulnerabilities.\n",
    "debug/failing-test.mdx": "# Failing Test\nFind the root cause of a failing test.\n",
    "skills/code-review/SKILL.md": SKILL_MD,
    "skills/code-review/references/checklist.md": "# Checklist\n\n- [ ] Tests pass\n",
    "skills/code-review/references/style.md": "# Style\n\nFollow the style guide.\n",
    "skills/tdd/SKILL.md": "---\nname: tdd\ndescription: Red, green, refactor\n---\n# TDD\n",
    "language-specific/python/typing.mdx": "# Python Typing\nAdd type hints.\n",
    "language-specific/python/logo.png": "not markdown",
    ".git/HEAD.md": "# Hidden\n",
}

EXPECTED_SLUGS = [
    "review/pr-review",
    "review/security-review",
    "debug/failing-test",
    "skills/code-review",
    "skills/code-review/references/checklist",
    "skills/code-review/references/style",
    "skills/tdd",
    "language-specific/python/typing",
]


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment(tmp_path_factory):
    """Keep tests independent of a developer's .env file."""
    missing_env = tmp_path_factory.mktemp("env") / ".env"
    os.environ["PROMPTBOOK_ENV_FILE"] = str(missing_env)
    os.environ.setdefault("LOG_LEVEL", "WARNING")
    yield


@pytest.fixture
def expected_slugs():
    return list(EXPECTED_SLUGS)


@pytest.fixture
def make_tree(tmp_path):
    """Return a function writing {relative path: text} under tmp_path/content."""
    root = tmp_path / "content"

    def _make(files):
        root.mkdir(parents=True, exist_ok=True)
        for relative, text in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(text.encode("utf-8"))
        return root

    return _make


@pytest.fixture
def content_dir(make_tree):
    return make_tree(SAMPLE_CONTENT)


@pytest.fixture
def catalog(content_dir):
    return CatalogBuilder(content_dir, workers=1).build()
