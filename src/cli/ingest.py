# =============================================================================
# src/cli/ingest.py -- CLI for the document knowledge base
# =============================================================================
#
# Subcommands:
#
#   process -- Ingest every new file from the configured source folders
#   status  -- Print the processing ledger summary
#   forget  -- Drop a file from the ledger (and its chunks from the store)
#   search  -- Similarity search over stored chunks
#   ask     -- Answer a question from stored knowledge
#
# Usage examples:
#   python -m src.cli.ingest process
#   python -m src.cli.ingest status --files
#   python -m src.cli.ingest forget design-notes.pdf --yes
#   python -m src.cli.ingest search "how do we size chunks?" --limit 3
#   python -m src.cli.ingest ask "what does the ledger store?"
# =============================================================================

"""Standalone CLI for building and querying the knowledge base.

Usage::

    python -m src.cli.ingest process
    python -m src.cli.ingest status
    python -m src.cli.ingest search "query text"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from src.config.settings import Settings
from src.utils.errors import KnowledgeAssistantError


def _build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct the same providers and services the API uses.

    Imported lazily so ``--help`` does not load the openai SDK, PyMuPDF
    and friends.
    """
    from src.main import build_components

    return build_components(app_settings)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_process(components: dict[str, Any]) -> int:
    """Ingest new files and print the per-file outcome."""
    report = await components["ingestion_service"].ingest()

    if report.collection_created:
        print(f"Created collection '{components['retrieval_service'].collection_name}'")

    if not report.documents:
        print("No new documents to process.")
        return 0

    for doc in report.documents:
        if doc.success:
            print(f"  OK    {doc.file_name:<40} {doc.chunks_processed:>5} chunks")
        else:
            print(f"  FAIL  {doc.file_name:<40} {doc.error_message}")

    print("\nProcessing complete:")
    print(f"  Documents:  {report.documents_processed} ({report.failed_documents} failed)")
    print(f"  Chunks:     {report.chunks_created}")
    print(f"  Stored:     {report.points_stored}")
    print(f"  Time:       {report.total_duration_ms / 1000:.2f}s")
    return 1 if report.failed_documents else 0


async def _handle_status(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Print the ledger summary."""
    ledger = components["ledger"]
    summary = ledger.summary()

    print("Knowledge Base Status")
    print("=" * 40)
    print(f"  Documents:    {summary.total_documents}")
    print(f"  Chunks:       {summary.total_chunks}")
    print(f"  Successful:   {summary.successful_documents}")
    print(f"  Failed:       {summary.failed_documents}")
    print(f"  Storage:      {summary.storage_location}")
    if not summary.storage_persistent:
        print("  WARNING: ledger is on temporary storage; it will not survive a restart.")

    if summary.last_run_at is not None:
        print("\n  Last run:")
        print(f"    At:         {summary.last_run_at.isoformat()}")
        print(f"    Documents:  {summary.last_run_documents}")
        print(f"    Chunks:     {summary.last_run_chunks}")
        print(f"    Duration:   {summary.last_run_duration_ms} ms")

    if args.files:
        print("\n  Documents:")
        for doc in summary.all_documents:
            state = "ok" if doc.success else f"failed: {doc.error_message}"
            print(f"    {doc.file_name:<40} {doc.document_type:<12} {state}")

    return 0


async def _handle_forget(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Forget a file so the next run processes it again."""
    if not args.yes:
        confirm = input(f"  Forget '{args.file_name}'? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return 0

    known = await components["ingestion_service"].forget_document(
        args.file_name, purge_vectors=not args.keep_vectors
    )
    if known:
        print(f"Forgot '{args.file_name}'.")
    else:
        print(f"'{args.file_name}' was not in the ledger.")
    return 0


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    results = await components["retrieval_service"].search(args.query, args.limit)
    if not results:
        print("No relevant knowledge found.")
        return 0

    for number, result in enumerate(results, start=1):
        print(f"{number}. [{result.score:.3f}] {result.source}")
        print(f"   {result.content}")
    return 0


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    answer = await components["answer_service"].ask(args.question, args.limit)
    print(answer.answer)
    if answer.sources:
        print("\nSources:")
        for result in answer.sources:
            print(f"  - {result.source}")
    return 0


async def _run(args: argparse.Namespace, components: dict[str, Any]) -> int:
    try:
        if args.command == "process":
            return await _handle_process(components)
        if args.command == "status":
            return await _handle_status(args, components)
        if args.command == "forget":
            return await _handle_forget(args, components)
        if args.command == "search":
            return await _handle_search(args, components)
        if args.command == "ask":
            return await _handle_ask(args, components)
        return 1
    except KnowledgeAssistantError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    finally:
        await components["vector_store"].close()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Build and query the local document knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("process", help="Ingest new files from the source folders")

    status_parser = subparsers.add_parser("status", help="Show the processing ledger summary")
    status_parser.add_argument(
        "--files", action="store_true", help="List every recorded document"
    )

    forget_parser = subparsers.add_parser(
        "forget", help="Forget a processed file so it is ingested again"
    )
    forget_parser.add_argument("file_name", help="Base file name, e.g. notes.pdf")
    forget_parser.add_argument(
        "--keep-vectors",
        action="store_true",
        dest="keep_vectors",
        help="Leave the file's chunks in the vector store",
    )
    forget_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    search_parser = subparsers.add_parser("search", help="Search stored knowledge")
    search_parser.add_argument("query", help="Free-text query")
    search_parser.add_argument("--limit", type=int, default=5, help="Maximum results (default: 5)")

    ask_parser = subparsers.add_parser("ask", help="Answer a question from stored knowledge")
    ask_parser.add_argument("question", help="Question text")
    ask_parser.add_argument("--limit", type=int, default=5, help="Context results (default: 5)")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse arguments, build components, dispatch."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    from src.utils.logging import configure_logging

    configure_logging(log_level=app_settings.log_level)

    components = _build_components(app_settings)
    sys.exit(asyncio.run(_run(args, components)))


if __name__ == "__main__":
    main()
