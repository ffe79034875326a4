"""
Exceptions raised while building and querying the PromptBook catalog.

Build-time errors (ScanError, ValidationError, DuplicateSlugError) abort the
whole build pass. NotFoundError is per-request and never affects the catalog.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class PromptBookError(ValueError):
    """Base exception for catalog errors."""
    pass


class ScanError(PromptBookError):
    """Raised when the content root is missing or unreadable."""

    def __init__(self, root: Union[str, Path], reason: str):
        self.root = Path(root)
        self.reason = reason
        super().__init__(f"Cannot scan content root {self.root}: {reason}")


class ValidationError(PromptBookError):
    """Raised for invalid content: bad frontmatter, missing title, bad ordering config."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        self.message = message
        if self.path is not None:
            message = f"{self.path}: {message}"
        super().__init__(message)


class DuplicateSlugError(PromptBookError):
    """Raised when two source files map to the same slug."""

    def __init__(self, slug: str, first: Union[str, Path], second: Union[str, Path]):
        self.slug = slug
        self.first = Path(first)
        self.second = Path(second)
        super().__init__(
            f"Duplicate slug '{slug}' produced by {self.first} and {self.second}"
        )


class NotFoundError(PromptBookError, LookupError):
    """Raised when a slug is not present in the catalog."""

    def __init__(self, slug: str, what: str = "Content"):
        self.slug = slug
        super().__init__(f"{what} not found: {slug}")


class CatalogUnavailableError(PromptBookError):
    """Raised when no catalog has been published yet."""
    pass
