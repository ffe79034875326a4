"""
Archive bundler for PromptBook skills.

A manifest is the ordered list of (path, content) pairs an archive must
contain. Manifests come only from the Catalog, so the same Catalog always
yields the same manifest, and package_zip turns a manifest into identical
bytes every time (fixed timestamps and permissions).

Layout of a single skill:
    SKILL.md
    references/<relative path>.md

Layout of the "all skills" bundle:
    <skill slug>/SKILL.md
    <skill slug>/references/...
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .errors import PromptBookError
from .models import SKILL, Catalog, ContentNode, reference_path
from .scanner import SKILL_FILE
from .views import get_skill

logger = logging.getLogger(__name__)

ALL = "__all__"
ARCHIVE_SUFFIX = ".skill"
BUNDLE_NAME = "all-skills.zip"
ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)
ZIP_FILE_MODE = 0o644


@dataclass(frozen=True)
class ManifestEntry:
    path: str
    content: str
    slug: str


Manifest = Tuple[ManifestEntry, ...]


def archive_name(skill: ContentNode) -> str:
    """File-system friendly name of a skill: the last slug segment."""
    return skill.slug.rsplit("/", 1)[-1]


def skill_manifest(catalog: Catalog, slug: str) -> Manifest:
    """Manifest for one skill.

    Raises:
        NotFoundError: If slug is not a skill
    """
    skill = get_skill(catalog, slug)
    entries = [ManifestEntry(path=SKILL_FILE, content=skill.source, slug=skill.slug)]
    for reference in skill.references:
        entries.append(ManifestEntry(
            path=reference_path(skill, reference).as_posix(),
            content=reference.source,
            slug=reference.slug,
        ))
    return tuple(entries)


def bundle_manifest(catalog: Catalog) -> Manifest:
    """Manifest for every skill, each under a directory named by its slug."""
    entries = []
    for skill in catalog.nodes(SKILL):
        for entry in skill_manifest(catalog, skill.slug):
            entries.append(ManifestEntry(
                path=f"{skill.slug}/{entry.path}",
                content=entry.content,
                slug=entry.slug,
            ))
    return tuple(entries)


def archive_manifest(catalog: Catalog, target: str) -> Manifest:
    """skill_manifest for a slug, bundle_manifest for ALL."""
    if target == ALL:
        return bundle_manifest(catalog)
    return skill_manifest(catalog, target)


def package_zip(manifest: Manifest, prefix: Optional[str] = None) -> bytes:
    """Pack a manifest into zip bytes, entries in manifest order.

    Args:
        manifest: Entries to write
        prefix: Optional directory every entry is placed under

    Returns:
        Zip archive bytes (identical for identical manifests)
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for entry in manifest:
            name = f"{prefix}/{entry.path}" if prefix else entry.path
            info = zipfile.ZipInfo(name, date_time=ZIP_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.create_system = 3
            info.external_attr = ZIP_FILE_MODE << 16
            archive.writestr(info, entry.content.encode("utf-8"), compresslevel=9)
    return buffer.getvalue()


def package_skill(catalog: Catalog, slug: str) -> bytes:
    """The downloadable .skill archive: the skill's files under its name."""
    skill = get_skill(catalog, slug)
    return package_zip(skill_manifest(catalog, slug), prefix=archive_name(skill))


def package_bundle(catalog: Catalog) -> bytes:
    return package_zip(bundle_manifest(catalog))


def prebuilt_archives(catalog: Catalog) -> Dict[str, bytes]:
    """Filename -> bytes for every pre-built archive.

    Raises:
        PromptBookError: If two skills would share an archive filename
    """
    archives: Dict[str, bytes] = {}
    owners: Dict[str, str] = {}
    for skill in catalog.nodes(SKILL):
        filename = f"{archive_name(skill)}{ARCHIVE_SUFFIX}"
        if filename in owners:
            raise PromptBookError(
                f"Skills '{owners[filename]}' and '{skill.slug}' both package as {filename}"
            )
        owners[filename] = skill.slug
        archives[filename] = package_skill(catalog, skill.slug)

    archives[BUNDLE_NAME] = package_bundle(catalog)
    return archives


def write_prebuilt_archives(catalog: Catalog, out_dir: Union[str, Path]) -> List[Path]:
    """Write every .skill archive plus the bundle into out_dir."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for filename, data in prebuilt_archives(catalog).items():
        path = out_dir / filename
        path.write_bytes(data)
        written.append(path)
        logger.debug(f"Wrote {path} ({len(data)} bytes)")

    logger.info(f"Wrote {len(written)} archives to {out_dir}")
    return written


def verify_prebuilt_archives(catalog: Catalog, out_dir: Union[str, Path]) -> List[str]:
    """Filenames in out_dir that are missing or differ from the catalog."""
    out_dir = Path(out_dir)
    stale = []
    for filename, data in prebuilt_archives(catalog).items():
        path = out_dir / filename
        if not path.is_file() or path.read_bytes() != data:
            stale.append(filename)
    return stale
