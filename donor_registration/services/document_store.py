"""
JSON-file document store with optimistic transactions.

This module provides:
- Named collections of JSON documents kept in a single data file
- Snapshot reads (get/list) without locking
- Atomic batched writes for admin operations
- run_transaction(): read-check-write closures with version validation
  at commit time and automatic retry on conflict

Every stored document carries an internal "_version" counter. A
transaction records the version of each document it reads; the commit
takes the file lock, reloads the file and rejects the whole write set if
any of those versions moved. The closure is then re-run on fresh state.
"""
import copy
import json
import logging
import os
import random
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar

from donor_registration.services.storage_service import load_json, save_json, lock_file
from donor_registration.utils.config import get_settings
from donor_registration.utils.date_utils import utc_now_iso
from donor_registration.utils.exceptions import (
    TransactionConflictError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

VERSION_KEY = "_version"


class _ServerTimestamp:
    """Sentinel replaced by the commit time when a write is applied."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _empty_data() -> Dict[str, Any]:
    return {"collections": {}}


def _strip_internal(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in doc.items() if k != VERSION_KEY}


def _resolve_server_timestamps(data: Dict[str, Any], commit_time: str) -> Dict[str, Any]:
    """Replace SERVER_TIMESTAMP values in place and return the mapping."""
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            data[key] = commit_time
    return data


class _WriteSet:
    """Ordered buffer of pending writes shared by batches and transactions."""

    def __init__(self):
        self._writes: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """
        Create or overwrite a document.

        The mapping is kept by reference until commit; SERVER_TIMESTAMP
        values in it are replaced in place with the commit time.
        """
        self._writes.append(("set", collection, doc_id, data))

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Merge fields into an existing document (missing documents fail the commit)."""
        self._writes.append(("update", collection, doc_id, fields))

    def delete(self, collection: str, doc_id: str) -> None:
        self._writes.append(("delete", collection, doc_id, None))

    def __len__(self) -> int:
        return len(self._writes)

    def apply(self, data: Dict[str, Any], commit_time: str) -> None:
        """
        Apply buffered writes to a loaded data file.

        Raises:
            KeyError: If an update targets a missing document
        """
        collections = data.setdefault("collections", {})
        for op, collection, doc_id, payload in self._writes:
            docs = collections.setdefault(collection, {})
            current = docs.get(doc_id)
            version = (current or {}).get(VERSION_KEY, 0) + 1

            if op == "delete":
                docs.pop(doc_id, None)
                continue

            payload = _resolve_server_timestamps(payload, commit_time)
            if op == "set":
                new_doc = copy.deepcopy(payload)
            else:
                if current is None:
                    raise KeyError(f"Cannot update missing document {collection}/{doc_id}")
                new_doc = {**current, **copy.deepcopy(payload)}

            new_doc[VERSION_KEY] = version
            docs[doc_id] = new_doc


class Batch(_WriteSet):
    """Group of writes committed together by DocumentStore.batch()."""
    pass


class Transaction(_WriteSet):
    """
    A single attempt of a transactional closure.

    Reads go through get(); each read records the document's version so
    the commit can detect concurrent writers. Reads must happen before
    writes are buffered.
    """

    def __init__(self, snapshot: Dict[str, Any]):
        super().__init__()
        self._snapshot = snapshot
        self._read_versions: Dict[Tuple[str, str], Optional[int]] = {}

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read a document, returning None if it doesn't exist."""
        if len(self):
            raise RuntimeError("Transactions require all reads to happen before writes")

        doc = self._snapshot.get("collections", {}).get(collection, {}).get(doc_id)
        self._read_versions[(collection, doc_id)] = None if doc is None else doc.get(VERSION_KEY, 0)
        return None if doc is None else _strip_internal(copy.deepcopy(doc))

    def validate(self, current: Dict[str, Any]) -> None:
        """
        Check that every read document is unchanged in the current data.

        Raises:
            TransactionConflictError: If any read version moved
        """
        collections = current.get("collections", {})
        for (collection, doc_id), seen_version in self._read_versions.items():
            doc = collections.get(collection, {}).get(doc_id)
            now_version = None if doc is None else doc.get(VERSION_KEY, 0)
            if now_version != seen_version:
                raise TransactionConflictError(
                    f"{collection}/{doc_id} changed (read version {seen_version}, now {now_version})"
                )


class DocumentStore:
    """Collections of JSON documents persisted in one data file."""

    def __init__(self, file_path: str, lock_timeout: float = 5.0, max_attempts: int = 5):
        self.file_path = file_path
        self.lock_timeout = lock_timeout
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def __repr__(self) -> str:
        return f"DocumentStore({self.file_path!r})"

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.file_path):
            return _empty_data()
        return load_json(self.file_path)

    def _read_snapshot(self) -> Dict[str, Any]:
        try:
            return self._load()
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read data file %s: %s", self.file_path, e)
            raise TransientStoreError(f"Cannot read {self.file_path}: {e}") from e

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return a copy of a document, or None if it doesn't exist."""
        doc = self._read_snapshot().get("collections", {}).get(collection, {}).get(doc_id)
        return None if doc is None else _strip_internal(doc)

    def list(self, collection: str) -> List[Dict[str, Any]]:
        """Return every document of a collection (unordered)."""
        docs = self._read_snapshot().get("collections", {}).get(collection, {})
        return [_strip_internal(doc) for doc in docs.values()]

    def _commit(self, writes: _WriteSet, transaction: Optional[Transaction] = None) -> str:
        """
        Apply writes under the file lock.

        Returns:
            The commit timestamp

        Raises:
            TransactionConflictError: If the transaction's reads are stale
            TransientStoreError: On lock timeout or I/O failure
        """
        try:
            with lock_file(self.file_path, timeout=self.lock_timeout):
                current = self._load()
                if transaction is not None:
                    transaction.validate(current)
                if not len(writes):
                    return utc_now_iso()
                commit_time = utc_now_iso()
                writes.apply(current, commit_time)
                save_json(self.file_path, current, backup=False)
                return commit_time
        except TimeoutError as e:
            logger.warning("Lock timeout on %s: %s", self.file_path, e)
            raise TransientStoreError(str(e)) from e
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Commit to %s failed: %s", self.file_path, e)
            raise TransientStoreError(f"Commit failed: {e}") from e

    @contextmanager
    def batch(self) -> Iterator[Batch]:
        """
        Collect writes and commit them atomically when the block exits.

        Nothing is written if the block raises.

        Usage:
            with store.batch() as batch:
                batch.set("events", "ev1", {...})
                batch.delete("registrants", "abc")
        """
        batch = Batch()
        yield batch
        self._commit(batch)

    def run_transaction(
        self,
        fn: Callable[[Transaction], T],
        max_attempts: Optional[int] = None,
    ) -> T:
        """
        Run fn(transaction) with serializable read-check-write semantics.

        fn may be called several times; it must derive every decision
        from reads made through the transaction it receives. Exceptions
        raised by fn abort the attempt without writing and propagate
        unchanged.

        Args:
            fn: Closure performing reads then buffering writes
            max_attempts: Override the store's max_attempts

        Returns:
            Whatever fn returned on the attempt that committed

        Raises:
            TransientStoreError: If every attempt conflicted, or on I/O errors
            ValueError: If max_attempts is below 1
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        for attempt in range(1, attempts + 1):
            transaction = Transaction(self._read_snapshot())
            result = fn(transaction)
            try:
                self._commit(transaction, transaction)
                return result
            except TransactionConflictError as e:
                logger.debug("Transaction conflict (attempt %d/%d): %s", attempt, attempts, e)
                if attempt < attempts:
                    time.sleep(random.uniform(0.001, 0.005) * attempt)

        logger.warning("Transaction gave up after %d attempts on %s", attempts, self.file_path)
        raise TransientStoreError(f"Transaction aborted after {attempts} conflicting attempts")


_default_store: Optional[DocumentStore] = None


def get_store() -> DocumentStore:
    """Return the application store configured by settings."""
    global _default_store

    if _default_store is None:
        settings = get_settings()
        _default_store = DocumentStore(
            settings.data_file,
            lock_timeout=settings.lock_timeout,
            max_attempts=settings.txn_max_attempts,
        )
    return _default_store


def _clear_store_cache() -> None:
    """Forget the default store (tests and settings reloads)."""
    global _default_store
    _default_store = None
