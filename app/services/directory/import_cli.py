"""
CLI for bulk-importing handles from a file.

Usage:
    python -m app.services.directory.import_cli handles.txt --contributor ops-team
    python -m app.services.directory.import_cli brands.csv --contributor ops-team --format table --dry-run
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

load_dotenv()

from app.core.config import settings
from app.models.schemas.handles import ParseResult
from app.services.directory.bulk_import import BulkImporter
from app.services.directory.store import SupabaseDirectoryStore
from app.services.directory.upsert import UpsertPipeline
from app.services.handles.parser import HandleParser
from app.services.handles.patterns import PatternLibrary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse a file of handles/URLs and upsert them into the directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One entry per line ("Nike - @nike", "https://x.com/nike", ...)
  python -m app.services.directory.import_cli handles.txt --contributor ops-team

  # Delimited table with a header row, preview only
  python -m app.services.directory.import_cli brands.csv --contributor ops-team --format table --dry-run
        """
    )
    parser.add_argument("file", type=Path, help="Text or CSV/TSV file to import")
    parser.add_argument("--contributor", required=True, help="Contributor ID recorded on every row")
    parser.add_argument(
        "--format",
        choices=["lines", "table"],
        default="lines",
        help="Input format (default: lines)"
    )
    parser.add_argument("--dry-run", action="store_true", help="Parse and report, write nothing")
    return parser


def parse_file(text: str, format: str, handle_parser: HandleParser) -> ParseResult:
    if format == "table":
        return handle_parser.parse_table(text)
    return handle_parser.parse_lines(text)


async def run_import(parsed: ParseResult, contributor_id: str) -> int:
    if not settings.supabase_url or not settings.supabase_key:
        print("❌ SUPABASE_URL and SUPABASE_SERVICE_KEY (or SUPABASE_ANON_KEY) must be set")
        return 1

    from supabase import create_client

    client = create_client(settings.supabase_url, settings.supabase_key)
    store = SupabaseDirectoryStore(client, settings.handles_table)
    importer = BulkImporter(UpsertPipeline(store, merge_threshold=settings.dedup_similarity_threshold))

    summary = await importer.import_candidates(parsed.candidates, contributor_id)

    print(f"✅ Imported {summary.succeeded}/{summary.total} ({summary.created} created, {summary.updated} updated)")
    if summary.failed:
        print(f"⚠️  {summary.failed} failed:")
        for error in summary.errors:
            print(f"   - {error}")
    return 0 if summary.succeeded or not summary.total else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.file.is_file():
        print(f"❌ File not found: {args.file}")
        return 1

    handle_parser = HandleParser(PatternLibrary(priority=settings.platform_order))
    parsed = parse_file(args.file.read_text(encoding="utf-8"), args.format, handle_parser)

    print(f"📄 {args.file}: {len(parsed.candidates)} candidate(s), {len(parsed.skipped)} skipped line(s)")
    for skipped in parsed.skipped:
        print(f"   line {skipped.line_number} ({skipped.reason}): {skipped.text}")

    if args.dry_run:
        for candidate in parsed.candidates:
            name = candidate.candidate_name or "-"
            print(f"   {candidate.platform.value:<18} {candidate.raw_handle:<30} {name} [{candidate.confidence.value}]")
        print("ℹ️  Dry run: nothing written")
        return 0

    try:
        return asyncio.run(run_import(parsed, args.contributor))
    except Exception as e:
        print(f"❌ Failed: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
