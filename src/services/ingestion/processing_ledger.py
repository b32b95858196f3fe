"""Persisted record of what has been ingested and how it went.

The ledger owns four documents in an :class:`IKeyValueStore`:

    processed_files       sorted list of file names already ingested
    processing_metadata   one ProcessingMetadata per file name
    last_processing_run   snapshot of the latest batch run
    point_id_sequence     next free vector-store point ID

The processed-files set is loaded once and only written back by
:meth:`save_processed_files`, which the orchestrator calls after a full
run.  A crash mid-run therefore re-processes that run's files instead of
leaving a half-updated index.  Metadata, on the other hand, is upserted
per file as soon as the attempt finishes.

Unreadable or malformed documents are treated as empty with a warning;
audit history is less important than being able to keep ingesting.
"""

from __future__ import annotations

from typing import Any, Iterable

import structlog
from pydantic import TypeAdapter, ValidationError

from src.interfaces.key_value_store import IKeyValueStore
from src.models.ledger import LastProcessingRun, ProcessingMetadata, ProcessingSummary

logger = structlog.get_logger(logger_name=__name__)

PROCESSED_FILES_KEY = "processed_files"
METADATA_KEY = "processing_metadata"
LAST_RUN_KEY = "last_processing_run"
POINT_ID_SEQUENCE_KEY = "point_id_sequence"

_METADATA_LIST = TypeAdapter(list[ProcessingMetadata])
_FILE_NAME_LIST = TypeAdapter(list[str])


class ProcessingLedger:
    """Dedup set, per-file audit records and last-run snapshot.

    Parameters
    ----------
    store:
        Durable key-value store, usually a
        :class:`~src.providers.storage.JsonFileStore` rooted at
        ``METADATA_PATH``.
    """

    def __init__(self, store: IKeyValueStore) -> None:
        self._store = store
        self._processed: set[str] = set(self._load(PROCESSED_FILES_KEY, _FILE_NAME_LIST, []))
        self._dirty = False

    # ------------------------------------------------------------------
    # Processed-files set
    # ------------------------------------------------------------------

    def is_processed(self, file_name: str) -> bool:
        return file_name in self._processed

    def mark_processed(self, file_name: str) -> None:
        """Add *file_name* to the in-memory set; persisted by :meth:`save_processed_files`."""
        if file_name not in self._processed:
            self._processed.add(file_name)
            self._dirty = True

    def save_processed_files(self) -> bool:
        """Persist the processed-files set if it changed.

        Returns
        -------
        bool
            ``True`` when the set was written.
        """
        if not self._dirty:
            return False
        self._store.write(PROCESSED_FILES_KEY, sorted(self._processed))
        self._dirty = False
        logger.info("processed_files_saved", count=len(self._processed))
        return True

    def discard_pending(self) -> None:
        """Forget unsaved additions by reloading the persisted set."""
        self._processed = set(self._load(PROCESSED_FILES_KEY, _FILE_NAME_LIST, []))
        self._dirty = False

    def processed_files(self) -> list[str]:
        return sorted(self._processed)

    # ------------------------------------------------------------------
    # Per-file metadata
    # ------------------------------------------------------------------

    def record_file_metadata(self, metadata: ProcessingMetadata) -> None:
        """Upsert *metadata*, replacing any earlier record for the same file name."""
        self.record_files_metadata([metadata])

    def record_files_metadata(self, metadatas: Iterable[ProcessingMetadata]) -> None:
        """Upsert several records with a single write."""
        incoming = {m.file_name: m for m in metadatas}
        if not incoming:
            return
        entries = [m for m in self.all_metadata() if m.file_name not in incoming]
        entries.extend(incoming.values())
        self._write_metadata(entries)

    def delete_file_metadata(self, file_name: str) -> bool:
        """Remove the metadata record and the processed-set entry for *file_name*.

        The file will be picked up again by the next batch run.

        Returns
        -------
        bool
            ``True`` if either a metadata record or a processed entry existed.
        """
        entries = self.all_metadata()
        remaining = [m for m in entries if m.file_name != file_name]
        had_metadata = len(remaining) != len(entries)
        if had_metadata:
            self._write_metadata(remaining)

        was_processed = file_name in self._processed
        if was_processed:
            self._processed.discard(file_name)
            self._store.write(PROCESSED_FILES_KEY, sorted(self._processed))

        logger.info(
            "file_metadata_deleted",
            file_name=file_name,
            had_metadata=had_metadata,
            was_processed=was_processed,
        )
        return had_metadata or was_processed

    def all_metadata(self) -> list[ProcessingMetadata]:
        return self._load(METADATA_KEY, _METADATA_LIST, [])

    def get_metadata(self, file_name: str) -> ProcessingMetadata | None:
        for entry in self.all_metadata():
            if entry.file_name == file_name:
                return entry
        return None

    # ------------------------------------------------------------------
    # Run snapshot
    # ------------------------------------------------------------------

    def record_run_snapshot(
        self, metadatas: Iterable[ProcessingMetadata], total_duration_ms: int
    ) -> LastProcessingRun:
        """Overwrite the last-run snapshot with the files touched by this run."""
        documents = list(metadatas)
        run = LastProcessingRun(
            total_duration_ms=max(0, total_duration_ms),
            documents_processed=len(documents),
            total_chunks=sum(m.chunks_processed for m in documents),
            documents=documents,
        )
        self._store.write(LAST_RUN_KEY, run.model_dump(mode="json"))
        return run

    def last_run(self) -> LastProcessingRun | None:
        raw = self._store.read(LAST_RUN_KEY)
        if raw is None:
            return None
        try:
            return LastProcessingRun.model_validate(raw)
        except ValidationError as exc:
            logger.warning("ledger_file_malformed", key=LAST_RUN_KEY, error=str(exc))
            return None

    def summary(self) -> ProcessingSummary:
        """Aggregate every stored metadata record plus the last-run snapshot."""
        entries = self.all_metadata()
        last_run = self.last_run()
        return ProcessingSummary(
            total_documents=len(entries),
            total_chunks=sum(m.chunks_processed for m in entries),
            successful_documents=sum(1 for m in entries if m.success),
            failed_documents=sum(1 for m in entries if not m.success),
            last_run_at=last_run.processed_at if last_run else None,
            last_run_duration_ms=last_run.total_duration_ms if last_run else 0,
            last_run_documents=last_run.documents_processed if last_run else 0,
            last_run_chunks=last_run.total_chunks if last_run else 0,
            all_documents=sorted(entries, key=lambda m: m.processed_at, reverse=True),
            last_run_details=last_run.documents if last_run else [],
            storage_location=self._store.location,
            storage_persistent=self._store.is_persistent,
        )

    # ------------------------------------------------------------------
    # Point IDs
    # ------------------------------------------------------------------

    def allocate_point_ids(self, count: int) -> range:
        """Reserve *count* consecutive vector-store point IDs.

        The sequence is persisted immediately, so IDs stay unique across
        runs even when a later store call fails.
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        raw = self._store.read(POINT_ID_SEQUENCE_KEY)
        start = raw if isinstance(raw, int) and raw >= 0 else 0
        if count:
            self._store.write(POINT_ID_SEQUENCE_KEY, start + count)
        return range(start, start + count)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    @property
    def storage_location(self) -> str:
        return self._store.location

    @property
    def is_persistent(self) -> bool:
        return self._store.is_persistent

    def _write_metadata(self, entries: list[ProcessingMetadata]) -> None:
        self._store.write(METADATA_KEY, [m.model_dump(mode="json") for m in entries])

    def _load(self, key: str, adapter: TypeAdapter[Any], default: Any) -> Any:
        raw = self._store.read(key)
        if raw is None:
            return default
        try:
            return adapter.validate_python(raw)
        except ValidationError as exc:
            logger.warning("ledger_file_malformed", key=key, error=str(exc))
            return default
