"""Command line entry point for notevec.

Commands mirror the service operations: list models, check compatibility,
create the table, insert a file's content, and search with a file's content.
Settings come from ``NotevecConfig`` (environment and ``.env``).
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from .common.config import NotevecConfig
from .common.logging import configure_logging
from .embeddings.base import EmbeddingProvider
from .embeddings.catalog import create_default_catalog
from .exceptions import NotevecError
from .service import VectorService, create_vector_service
from .vector_store.factory import create_database_from_config

logger = structlog.get_logger("cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NEEDS_CONFIRMATION = 2


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def list_models(provider: Optional[str]) -> int:
    catalog = create_default_catalog()
    descriptors = catalog.list_for_provider(EmbeddingProvider(provider)) if provider else list(catalog)
    for descriptor in descriptors:
        print(f"{descriptor.name:<26} {descriptor.provider.value:<7} {descriptor.dimensions:>5}  {descriptor.description}")
    return EXIT_OK


async def _run_command(args: argparse.Namespace, config: NotevecConfig) -> int:
    database = create_database_from_config(config)
    await database.initialize()
    service: Optional[VectorService] = None
    try:
        service = create_vector_service(config, database)

        if args.command == "check":
            report = await service.check_compatibility()
            table = report.table_dimensions if report.table_dimensions is not None else "-"
            print(
                f"model={service.model_name} model_dimensions={report.model_dimensions} "
                f"table_dimensions={table} compatible={report.compatible}"
            )
            return EXIT_OK if report.compatible else EXIT_NEEDS_CONFIRMATION

        if args.command == "create-table":
            await service.recreate_table()
            print(f"Vector table {service.store.table_name} created with {service.model_dimensions} dimensions")
            return EXIT_OK

        if args.command == "insert":
            outcome = await service.insert_content(_read_text(args.file), confirm_recreate=args.yes)
            if outcome.requires_confirmation:
                report = outcome.compatibility
                print(
                    f"Model {service.model_name} produces {report.model_dimensions} dimensions but the "
                    f"table has {report.table_dimensions}. Re-run with --yes to recreate the table "
                    f"(all stored vectors will be deleted)."
                )
                return EXIT_NEEDS_CONFIRMATION
            print(f"Vector inserted with ID: {outcome.id}")
            return EXIT_OK

        if args.command == "search":
            limit = args.limit or config.notevec_search_limit
            results = await service.search_similar(_read_text(args.file), limit=limit)
            if not results:
                print("No similar content found")
            for result in results:
                preview = " ".join(result.content.split())[:80]
                print(f"{result.id:>6}  {result.similarity:.4f}  {preview}")
            return EXIT_OK

        raise ValueError(f"Unknown command: {args.command}")
    finally:
        if service is not None:
            await service.aclose()
        await database.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notevec", description="Note embeddings and similarity search")
    subparsers = parser.add_subparsers(dest="command", required=True)

    models = subparsers.add_parser("models", help="List known embedding models")
    models.add_argument("--provider", choices=[p.value for p in EmbeddingProvider])

    subparsers.add_parser("check", help="Check table/model dimension compatibility")
    subparsers.add_parser("create-table", help="Drop and recreate the vector table")

    insert = subparsers.add_parser("insert", help="Embed and store a file ('-' for stdin)")
    insert.add_argument("file")
    insert.add_argument("--yes", action="store_true", help="Recreate an incompatible table without asking")

    search = subparsers.add_parser("search", help="Search for content similar to a file ('-' for stdin)")
    search.add_argument("file")
    search.add_argument("--limit", type=int, help="Maximum number of results")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "limit", None) is not None and args.limit < 1:
        parser.error("--limit must be at least 1")

    if args.command == "models":
        return list_models(args.provider)

    # ValueError also covers pydantic validation and undecodable input files
    try:
        config = NotevecConfig()
        configure_logging("notevec", config.notevec_log_level, config.notevec_log_format)
        return asyncio.run(_run_command(args, config))
    except (NotevecError, OSError, ValueError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
