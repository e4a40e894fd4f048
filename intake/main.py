import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from intake.aggregation.base import BaseAggregationStore
from intake.aggregation.factory import AggregationStoreFactory
from intake.aggregation.postgres_store import PostgresAggregationStore
from intake.config.settings import Settings
from intake.database.connection import close_pool, init_pool
from intake.ingestion.exceptions import (
    ClassificationError,
    ClientInputError,
    StorageError,
    UnreadableFileError,
)
from intake.ingestion.models import DocumentType, UploadRequest
from intake.ingestion.orchestrator import build_orchestrator
from intake.ingestion.submissions import SubmissionReader, register_submission
from intake.logging.logger import Log
from intake.pdf.factory import PdfInspectorFactory
from intake.storage.factory import ObjectStoreFactory

EXIT_STORAGE_ERROR = 1
EXIT_CLIENT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intake", description="Submission document intake")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create the aggregation table")

    register = commands.add_parser("register", help="register a submission")
    register.add_argument("tenant")
    register.add_argument("submission")

    ingest = commands.add_parser("ingest", help="ingest a local file into a submission")
    ingest.add_argument("tenant")
    ingest.add_argument("submission")
    ingest.add_argument("document_type", choices=[t.value for t in DocumentType])
    ingest.add_argument("path", type=Path)
    ingest.add_argument("--name", help="display name, defaults to the file name")
    ingest.add_argument("--password", help="password for a protected PDF")

    show = commands.add_parser("show", help="print submission totals")
    show.add_argument("tenant")
    show.add_argument("submission")
    return parser


def run(args: argparse.Namespace, settings: Settings, store: BaseAggregationStore) -> int:
    if args.command == "init-db":
        if not isinstance(store, PostgresAggregationStore):
            Log.info(f"Backend '{settings.aggregation_backend}' needs no schema")
            return 0
        store.ensure_schema()
        Log.info("Aggregation schema ready")
        return 0

    if args.command == "register":
        register_submission(store, args.tenant, args.submission)
        return 0

    object_store = ObjectStoreFactory.create(settings)
    if args.command == "show":
        profile = SubmissionReader(store, object_store).profile(args.tenant, args.submission)
        print(
            f"{profile.tenant_id}/{profile.submission_id}: "
            f"{profile.total_documents} documents, {profile.total_pages} pages"
        )
        return 0

    try:
        content = args.path.read_bytes()
    except OSError as exc:
        raise UnreadableFileError(f"Cannot read {args.path}: {exc}") from exc

    orchestrator = build_orchestrator(
        settings,
        store=store,
        object_store=object_store,
        pdf_inspector=PdfInspectorFactory.create(settings),
    )
    result = orchestrator.ingest(
        UploadRequest(
            tenant_id=args.tenant,
            submission_id=args.submission,
            document_type=args.document_type,
            display_name=args.name or args.path.name,
            content=content,
            password=args.password,
            relative_path=str(args.path),
        )
    )
    print(f"{result.storage_key} index={result.file_index} pages={result.page_count}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: settings -> logging -> pool (postgres only) -> command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    store = AggregationStoreFactory.create(settings)
    uses_pool = isinstance(store, PostgresAggregationStore)
    if uses_pool:
        init_pool(settings)

    try:
        return run(args, settings, store)
    except (ClientInputError, ClassificationError) as exc:
        Log.error(f"Request rejected: {exc}")
        return EXIT_CLIENT_ERROR
    except StorageError as exc:
        Log.error(f"Storage failure: {exc}")
        return EXIT_STORAGE_ERROR
    finally:
        if uses_pool:
            close_pool()


if __name__ == "__main__":
    sys.exit(main())
