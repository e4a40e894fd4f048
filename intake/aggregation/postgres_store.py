import threading
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.types.json import Jsonb
from psycopg_pool import PoolTimeout

from intake.aggregation.base import BaseAggregationStore
from intake.aggregation.keys import CompositeKey, profile_key
from intake.aggregation.models import SubmissionDocument, SubmissionFile, SubmissionProfile
from intake.database.connection import get_connection
from intake.ingestion.exceptions import RecordExistsError, RecordNotFoundError, StorageError
from intake.logging.logger import Log

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS submission_records (
    partition_key TEXT NOT NULL,
    sort_key TEXT NOT NULL,
    record_type TEXT NOT NULL,
    attributes JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (partition_key, sort_key)
)
"""


@contextmanager
def _storage_errors(action: str) -> Generator[None, None, None]:
    try:
        yield
    except (psycopg.Error, PoolTimeout) as exc:
        raise StorageError(f"Aggregation store {action} failed: {exc}") from exc


class PostgresAggregationStore(BaseAggregationStore):
    """Aggregation store on one PostgreSQL table keyed by (partition_key, sort_key).

    While a thread holds a document lock, its reads and writes run on the
    connection that holds the lock, so an upload needs one pooled connection.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def ensure_schema(self) -> None:
        """Create the submission_records table if it does not exist."""
        with _storage_errors("schema setup"), get_connection() as conn:
            conn.execute(SCHEMA_SQL)
            conn.commit()

    def get_profile(self, tenant_id: str, submission_id: str) -> SubmissionProfile | None:
        attributes = self._get(profile_key(tenant_id, submission_id))
        return SubmissionProfile.from_attributes(attributes) if attributes else None

    def create_profile(self, tenant_id: str, submission_id: str) -> SubmissionProfile:
        key = profile_key(tenant_id, submission_id)
        initial = SubmissionProfile(tenant_id, submission_id).to_attributes()
        with _storage_errors("create_profile"), self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO submission_records
                        (partition_key, sort_key, record_type, attributes)
                    VALUES (%s, %s, 'profile', %s)
                    ON CONFLICT (partition_key, sort_key) DO NOTHING
                    """,
                    (key.partition, key.sort, Jsonb(initial)),
                )
                cur.execute(
                    """
                    SELECT attributes FROM submission_records
                    WHERE partition_key = %s AND sort_key = %s
                    """,
                    (key.partition, key.sort),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise StorageError(f"Profile {key.partition} vanished after creation")
        return SubmissionProfile.from_attributes(row[0])

    def list_by_prefix(self, partition: str, sort_prefix: str) -> list[SubmissionFile]:
        with _storage_errors("list_by_prefix"), self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT attributes FROM submission_records
                    WHERE partition_key = %s
                      AND starts_with(sort_key, %s)
                      AND record_type = 'file'
                    ORDER BY sort_key
                    """,
                    (partition, sort_prefix),
                )
                rows = cur.fetchall()
        return [SubmissionFile.from_attributes(row[0]) for row in rows]

    def get_file(self, key: CompositeKey) -> SubmissionFile | None:
        attributes = self._get(key)
        return SubmissionFile.from_attributes(attributes) if attributes else None

    def put_file(self, key: CompositeKey, record: SubmissionFile) -> None:
        self._create(key, "file", record.to_attributes())

    def increment_profile(
        self,
        tenant_id: str,
        submission_id: str,
        *,
        pages: int,
        documents: int,
    ) -> SubmissionProfile:
        key = profile_key(tenant_id, submission_id)
        initial = SubmissionProfile(tenant_id, submission_id, pages, documents).to_attributes()
        with _storage_errors("increment_profile"), self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO submission_records
                        (partition_key, sort_key, record_type, attributes)
                    VALUES (%s, %s, 'profile', %s)
                    ON CONFLICT (partition_key, sort_key) DO UPDATE
                    SET attributes = submission_records.attributes || jsonb_build_object(
                            'total_pages',
                            COALESCE((submission_records.attributes->>'total_pages')::bigint, 0)
                                + %s::bigint,
                            'total_documents',
                            COALESCE((submission_records.attributes->>'total_documents')::bigint, 0)
                                + %s::bigint
                        ),
                        updated_at = NOW()
                    RETURNING attributes
                    """,
                    (key.partition, key.sort, Jsonb(initial), pages, documents),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise StorageError(f"Profile upsert for {key.partition} returned no row")
        return SubmissionProfile.from_attributes(row[0])

    def get_document(self, key: CompositeKey) -> SubmissionDocument | None:
        attributes = self._get(key)
        return SubmissionDocument.from_attributes(attributes) if attributes else None

    def put_document(self, key: CompositeKey, record: SubmissionDocument) -> None:
        self._create(key, "document", record.to_attributes())

    def update_document(self, key: CompositeKey, fields: dict[str, Any]) -> None:
        with _storage_errors("update_document"), self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE submission_records
                    SET attributes = attributes || %s, updated_at = NOW()
                    WHERE partition_key = %s AND sort_key = %s
                    """,
                    (Jsonb(fields), key.partition, key.sort),
                )
                if cur.rowcount == 0:
                    raise RecordNotFoundError(f"No record at {key.partition}/{key.sort}")
            conn.commit()

    @contextmanager
    def document_lock(
        self,
        tenant_id: str,
        submission_id: str,
        document_type: str,
    ) -> Iterator[None]:
        """Session-level advisory lock. Store calls inside the scope reuse its connection."""
        lock_name = f"{tenant_id}#{submission_id}#{document_type}"
        with _storage_errors("document_lock"), get_connection() as conn:
            conn.execute("SELECT pg_advisory_lock(hashtextextended(%s, 0))", (lock_name,))
            conn.commit()
            self._local.connection = conn
            try:
                yield
            finally:
                self._local.connection = None
                try:
                    conn.execute(
                        "SELECT pg_advisory_unlock(hashtextextended(%s, 0))", (lock_name,)
                    )
                    conn.commit()
                except psycopg.Error as exc:
                    Log.warning(
                        f"Failed to release advisory lock {lock_name}, "
                        f"it is released when the session closes: {exc}"
                    )

    @contextmanager
    def _connection(self) -> Iterator[psycopg.Connection[Any]]:
        bound: psycopg.Connection[Any] | None = getattr(self._local, "connection", None)
        if bound is None:
            with get_connection() as conn:
                yield conn
            return
        try:
            yield bound
        except Exception:
            bound.rollback()
            raise

    def _get(self, key: CompositeKey) -> dict[str, Any] | None:
        with _storage_errors("get"), self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT attributes FROM submission_records
                    WHERE partition_key = %s AND sort_key = %s
                    """,
                    (key.partition, key.sort),
                )
                row = cur.fetchone()
        return row[0] if row is not None else None

    def _create(self, key: CompositeKey, record_type: str, attributes: dict[str, Any]) -> None:
        with _storage_errors(f"put {record_type}"), self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO submission_records
                        (partition_key, sort_key, record_type, attributes)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (partition_key, sort_key) DO NOTHING
                    """,
                    (key.partition, key.sort, record_type, Jsonb(attributes)),
                )
                if cur.rowcount == 0:
                    raise RecordExistsError(
                        f"Record already exists at {key.partition}/{key.sort}"
                    )
            conn.commit()
