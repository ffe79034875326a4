"""
Command line tool for PromptBook.

Usage:
    promptbook build                     # validate content and show stats
    promptbook export -o llms-full.txt   # write the aggregated export
    promptbook archives                  # write pre-built .skill archives
    promptbook archives --check          # verify pre-built archives are current
    promptbook serve                     # run the HTTP server
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .archive import verify_prebuilt_archives, write_prebuilt_archives
from .builder import CatalogBuilder
from .config import configure_logging, load_settings
from .errors import DuplicateSlugError, PromptBookError, ScanError, ValidationError
from .views import aggregated_export

RULE = "=" * 70


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptbook",
        description="Build and export the PromptBook content catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Validate content/ and print statistics
    promptbook build

    # Build from another directory, verbose
    promptbook --content-dir ./docs build -v

    # Write llms-full.txt
    promptbook export -o public/llms-full.txt

    # Refresh pre-built skill archives
    promptbook archives --out-dir skills
        """,
    )
    parser.add_argument(
        "--content-dir",
        type=Path,
        help="Content root (default: $CONTENT_DIR or ./content)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Parser threads (default: $CATALOG_BUILD_WORKERS or 4)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    build = commands.add_parser("build", help="Validate content and show statistics")
    build.add_argument("--verbose", "-v", action="store_true", help="List every node")

    export = commands.add_parser("export", help="Write the aggregated export")
    export.add_argument("--output", "-o", type=Path, help="Output file (default: stdout)")

    archives = commands.add_parser("archives", help="Write or verify pre-built skill archives")
    archives.add_argument("--out-dir", type=Path, help="Archive directory (default: $ARCHIVE_DIR or ./skills)")
    archives.add_argument("--check", action="store_true", help="Only verify, exit 1 if stale")

    serve = commands.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--reload", action="store_true")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)

    content_dir = args.content_dir or settings.content_dir
    workers = args.workers or settings.build_workers

    if args.command == "serve":
        from .api import run_server
        run_server(settings, host=args.host, reload=args.reload)
        return 0

    try:
        catalog = CatalogBuilder(content_dir, workers=workers).build()
    except ScanError as exc:
        print(f"✗ Error: {exc}", file=sys.stderr)
        return 2
    except DuplicateSlugError as exc:
        print(f"✗ Duplicate slug '{exc.slug}':", file=sys.stderr)
        print(f"    {exc.first}", file=sys.stderr)
        print(f"    {exc.second}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"✗ Invalid content: {exc}", file=sys.stderr)
        return 1

    if args.command == "build":
        stats = catalog.stats()
        print("\n" + RULE)
        print("CATALOG BUILD COMPLETE")
        print(RULE)
        print(f"  Content root: {content_dir}")
        print(f"  Total nodes:  {stats['total']}")
        print(f"  By kind:      {stats['by_kind']}")
        print(f"  By category:  {stats['by_category']}")
        if args.verbose:
            print()
            for node in catalog.nodes():
                print(f"  • {node.slug} [{node.kind}] {node.title}")
        print(RULE + "\n")
        return 0

    if args.command == "export":
        text = aggregated_export(catalog, title=f"{settings.site_title}: Full Content")
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(text, encoding="utf-8")
            print(f"✓ Wrote {len(catalog)} documents to {args.output}")
        else:
            sys.stdout.write(text)
        return 0

    out_dir = args.out_dir or settings.archive_dir
    try:
        if args.check:
            stale = verify_prebuilt_archives(catalog, out_dir)
            if stale:
                print(f"✗ Stale archives in {out_dir}: {', '.join(stale)}", file=sys.stderr)
                return 1
            print(f"✓ Archives in {out_dir} match the catalog")
            return 0

        written = write_prebuilt_archives(catalog, out_dir)
    except PromptBookError as exc:
        print(f"✗ Error: {exc}", file=sys.stderr)
        return 1

    print(f"✓ Wrote {len(written)} archives to {out_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
