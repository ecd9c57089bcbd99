"""
Command-line interface for the CV store and analysis pipeline.

Examples:
    resort-cv upload cvs/*.pdf --analyze
    resort-cv import-url https://example.com/cv.pdf
    resort-cv analyze-pending
    resort-cv search language:english-fluent experience:3-5-years
    resort-cv search --department "food" --age 23 35 --salary 1500 3000
    resort-cv text CV_ID --enhanced
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from resort_cv_ai.config import CONTENT_TYPES_BY_EXTENSION
from resort_cv_ai.cv_pipeline.analysis_service import build_analysis_service
from resort_cv_ai.schemas.search_filter import DemographicFilter
from resort_cv_ai.services.blob_store import GridFSBlobStore
from resort_cv_ai.services.cv_store import CVStore
from resort_cv_ai.services.file_fetcher import fetch_file
from resort_cv_ai.services.record_store import MongoRecordStore
from resort_cv_ai.utils.logger import get_logger

logger = get_logger(__name__)


def _build_store() -> CVStore:
    return CVStore(MongoRecordStore(), GridFSBlobStore())


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False, default=str))


def guess_content_type(path: Path) -> Optional[str]:
    return CONTENT_TYPES_BY_EXTENSION.get(path.suffix.lower())


async def _analyze(store: CVStore, cv_ids: List[str]) -> bool:
    if not cv_ids:
        print("No CVs to analyze")
        return True
    service = build_analysis_service(cv_store=store)
    results = await service.analyze_cvs(cv_ids)
    _print_json([r.model_dump() for r in results])
    return all(r.success for r in results)


async def cmd_upload(store: CVStore, args: argparse.Namespace) -> bool:
    ok = True
    added = []
    for raw_path in args.paths:
        path = Path(raw_path)
        if not path.is_file():
            logger.error("File not found: %s", path)
            ok = False
            continue
        record = await store.add_cv(path.read_bytes(), path.name, guess_content_type(path))
        print(f"{record.id}\t{record.filename}")
        added.append(record.id)
    if args.analyze:
        ok = await _analyze(store, added) and ok
    return ok


async def cmd_import_url(store: CVStore, args: argparse.Namespace) -> bool:
    fetched = await fetch_file(args.url)
    if fetched is None:
        logger.error("Could not download CV from %s", args.url)
        return False
    if not fetched.content:
        logger.error("Downloaded CV from %s is empty", args.url)
        return False
    record = await store.add_cv(fetched.content, fetched.filename, fetched.content_type)
    print(f"{record.id}\t{record.filename}")
    if args.analyze:
        return await _analyze(store, [record.id])
    return True


async def cmd_analyze(store: CVStore, args: argparse.Namespace) -> bool:
    return await _analyze(store, args.ids)


async def cmd_analyze_pending(store: CVStore, args: argparse.Namespace) -> bool:
    cv_ids = await store.pending_ids()
    logger.info("Found %s CVs pending analysis", len(cv_ids))
    return await _analyze(store, cv_ids)


async def cmd_show(store: CVStore, args: argparse.Namespace) -> bool:
    record = await store.get_cv(args.id)
    if record is None:
        logger.error("CV not found: %s", args.id)
        return False
    _print_json(record.to_document())
    return True


async def cmd_search(store: CVStore, args: argparse.Namespace) -> bool:
    try:
        demographic = DemographicFilter(
            first_name=args.first_name,
            last_name=args.last_name,
            department=args.department,
            age=args.age,
            expected_salary=args.salary,
        )
    except ValidationError as e:
        logger.error("Invalid search filter: %s", e)
        return False
    records = await store.search(args.tags, demographic=demographic, match_all=not args.any)
    _print_json(
        [
            {
                "id": r.id,
                "filename": r.filename,
                "status": r.status.value,
                "firstName": r.first_name,
                "lastName": r.last_name,
                "department": r.department,
                "age": r.age,
                "expectedSalary": r.expected_salary,
                "tags": r.tags,
            }
            for r in records
        ]
    )
    return True


async def cmd_text(store: CVStore, args: argparse.Namespace) -> bool:
    if await store.get_cv(args.id) is None:
        logger.error("CV not found: %s", args.id)
        return False
    text = await store.get_derived_text(args.id, enhanced=args.enhanced)
    if text is None:
        kind = "enhanced" if args.enhanced else "original"
        logger.error("CV %s has no %s text yet; analyze it first", args.id, kind)
        return False
    print(text)
    return True


async def cmd_delete(store: CVStore, args: argparse.Namespace) -> bool:
    deleted = await store.delete_cv(args.id)
    if not deleted:
        logger.error("CV not found: %s", args.id)
    return deleted


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resort-cv",
        description="Upload, analyze and search hospitality CVs",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Add CV files to the store")
    upload.add_argument("paths", nargs="+", help="PDF, DOCX, image or text files")
    upload.add_argument("--analyze", action="store_true", help="Analyze the uploaded CVs")
    upload.set_defaults(handler=cmd_upload)

    import_url = sub.add_parser("import-url", help="Download a CV over HTTP(S) and add it")
    import_url.add_argument("url")
    import_url.add_argument("--analyze", action="store_true", help="Analyze the imported CV")
    import_url.set_defaults(handler=cmd_import_url)

    analyze = sub.add_parser("analyze", help="Analyze CVs by id")
    analyze.add_argument("ids", nargs="+")
    analyze.set_defaults(handler=cmd_analyze)

    pending = sub.add_parser("analyze-pending", help="Analyze every pending or failed CV")
    pending.set_defaults(handler=cmd_analyze_pending)

    show = sub.add_parser("show", help="Print a CV record as JSON")
    show.add_argument("id")
    show.set_defaults(handler=cmd_show)

    search = sub.add_parser("search", help="List CVs by tags and demographic filters")
    search.add_argument("tags", nargs="*")
    search.add_argument("--any", action="store_true", help="Match any tag instead of all")
    search.add_argument("--first-name", help="Case-insensitive partial first name")
    search.add_argument("--last-name", help="Case-insensitive partial last name")
    search.add_argument("--department", help="Case-insensitive partial department")
    search.add_argument("--age", nargs=2, type=float, metavar=("MIN", "MAX"), help="Inclusive age range")
    search.add_argument("--salary", nargs=2, type=float, metavar=("MIN", "MAX"), help="Inclusive expected salary range")
    search.set_defaults(handler=cmd_search)

    text = sub.add_parser("text", help="Print the stored original or enhanced text of an analyzed CV")
    text.add_argument("id")
    text.add_argument("--enhanced", action="store_true", help="Print the LLM-enhanced text")
    text.set_defaults(handler=cmd_text)

    delete = sub.add_parser("delete", help="Remove a CV and its files")
    delete.add_argument("id")
    delete.set_defaults(handler=cmd_delete)
    return parser


def main(argv: Optional[List[str]] = None, store: Optional[CVStore] = None) -> int:
    args = build_parser().parse_args(argv)
    store = store or _build_store()
    try:
        ok = asyncio.run(args.handler(store, args))
    except Exception as e:
        logger.exception("Command %s failed: %s", args.command, e)
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
