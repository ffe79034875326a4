"""
Metadata parser for PromptBook content files.

Splits an optional YAML frontmatter block from the document body and decodes
it into typed fields.

Format:
---
title: Pull Request Review
description: Review a diff for correctness and style
name: pr-review
---
# Pull Request Review
...

Prompts usually carry no frontmatter; their title is the first "# " heading
and their description the first plain line after it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from .errors import ValidationError

FRONTMATTER_OPEN = re.compile(r'\A---[ \t]*\r?\n')
FRONTMATTER_BLOCK = re.compile(
    r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.DOTALL | re.MULTILINE
)
BOM = "\ufeff"


class Frontmatter(BaseModel):
    """Schema of the header block. Unknown keys are kept but not interpreted."""

    model_config = ConfigDict(frozen=True, extra="allow", coerce_numbers_to_str=True)

    title: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class ParsedDocument:
    """Decoded metadata plus the untouched body and source text."""
    title: str
    description: str
    name: Optional[str]
    body: str
    source: str
    extra: Dict = field(default_factory=dict)


@dataclass(frozen=True)
class Ok:
    value: ParsedDocument


@dataclass(frozen=True)
class Err:
    error: ValidationError


ParseResult = Union[Ok, Err]


def split_frontmatter(text: str) -> Tuple[Optional[str], str]:
    """Split text into (header, body).

    Returns (None, text) when there is no header block. The body is returned
    exactly as it appears after the closing delimiter. A leading byte order
    mark is dropped.

    Raises:
        ValueError: If a header is opened but never closed
    """
    if text.startswith(BOM):
        text = text[len(BOM):]

    if not FRONTMATTER_OPEN.match(text):
        return None, text

    match = FRONTMATTER_BLOCK.match(text)
    if not match:
        raise ValueError("frontmatter block is not terminated by '---'")

    return match.group(1), text[match.end():]


def extract_heading(body: str) -> Tuple[str, str]:
    """Return (title, description) from the first H1 and the line after it.

    Example:
        >>> extract_heading("# Debug Failing Test\\nFind the root cause.\\n")
        ('Debug Failing Test', 'Find the root cause.')
    """
    title = ""
    description = ""

    for line in body.splitlines():
        line = line.strip()
        if not title:
            if line.startswith("# "):
                title = line[2:].strip()
            continue
        if line and not line.startswith("#") and not line.startswith("---"):
            description = line
            break

    return title, description


def decode_metadata(raw: Union[bytes, str], path: Union[str, Path]) -> ParseResult:
    """Decode one content file into a ParsedDocument.

    Args:
        raw: File contents
        path: Source path, used in error messages

    Returns:
        Ok(ParsedDocument) on success, Err(ValidationError) otherwise
    """
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            return Err(ValidationError(f"file is not valid UTF-8 ({exc.reason})", path))
    else:
        text = raw

    try:
        header, body = split_frontmatter(text)
    except ValueError as exc:
        return Err(ValidationError(str(exc), path))

    frontmatter = Frontmatter()
    if header is not None:
        try:
            data = yaml.safe_load(header)
        except yaml.YAMLError as exc:
            return Err(ValidationError(f"malformed frontmatter: {exc}", path))

        if data is None:
            data = {}
        if not isinstance(data, dict):
            return Err(ValidationError(
                f"frontmatter must be a mapping, got {type(data).__name__}", path
            ))

        try:
            frontmatter = Frontmatter.model_validate(data)
        except SchemaError as exc:
            fields = ", ".join(".".join(str(p) for p in e["loc"]) for e in exc.errors())
            return Err(ValidationError(f"invalid frontmatter fields: {fields}", path))

    heading_title, heading_description = extract_heading(body)

    title = _first_present(frontmatter.title, frontmatter.name, heading_title)
    if not title:
        return Err(ValidationError("missing title (no frontmatter title/name and no '# ' heading)", path))

    description = _first_present(frontmatter.description, heading_description)

    return Ok(ParsedDocument(
        title=title,
        description=description,
        name=frontmatter.name,
        body=body,
        source=text,
        extra=dict(frontmatter.model_extra or {}),
    ))


def parse_document(raw: Union[bytes, str], path: Union[str, Path]) -> ParsedDocument:
    """Like decode_metadata, but raises the ValidationError instead of returning it."""
    result = decode_metadata(raw, path)
    if isinstance(result, Err):
        raise result.error
    return result.value


def _first_present(*values: Optional[str]) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""
