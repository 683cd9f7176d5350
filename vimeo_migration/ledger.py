"""Durable record of every source video and its migration outcome."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy import Engine, create_engine, event, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .exceptions import LedgerError
from .models import RETRYABLE_STATUSES, Base, Job, JobStatus

LOGGER = logging.getLogger(__name__)

# 30 seconds, in milliseconds
SQLITE_BUSY_TIMEOUT = 30000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    # Every ledger write is an outcome we cannot afford to lose on a crash
    cursor.execute("PRAGMA synchronous = FULL")
    cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT}")
    cursor.close()


def create_ledger_engine(database_path: Path | str) -> Engine:
    """Create the pooled SQLAlchemy engine for the SQLite ledger file."""

    path = Path(database_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LedgerError(f"Cannot create ledger directory {path.parent}: {exc}") from exc
    engine = create_engine(f"sqlite:///{path}", echo=False)
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


class JobLedger:
    """Job table keyed by source filename.

    Parameters
    ----------
    database_path:
        SQLite file holding the ``uploads`` table. Created when missing.
    clock:
        Callable returning the timestamp stored in ``created_at`` and
        ``updated_at``. Defaults to naive UTC now.
    engine:
        Optional pre-built engine, mainly for tests.

    Any storage failure surfaces as :class:`LedgerError`.
    """

    def __init__(
        self,
        database_path: Path | str,
        *,
        clock: Callable[[], datetime] = _utcnow,
        engine: Engine | None = None,
    ) -> None:
        self.database_path = Path(database_path)
        self._clock = clock
        self.engine = engine or create_ledger_engine(self.database_path)
        self._sessions = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise LedgerError(
                f"Cannot open ledger at {self.database_path}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise LedgerError(f"Ledger operation failed: {exc}") from exc
        finally:
            session.close()

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    def upsert_new(self, filename: str, side_asset_filename: str | None = None) -> None:
        """Insert a pending job for ``filename`` unless one already exists.

        Existing rows are left untouched, whatever their status, so repeated
        scans never reset an uploaded or failed job.
        """

        now = self._clock()
        stmt = (
            sqlite_insert(Job)
            .values(
                source_filename=filename,
                side_asset_filename=side_asset_filename,
                status=JobStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["source_filename"])
        )
        with self._transaction() as session:
            session.execute(stmt)

    def exists(self, filename: str) -> bool:
        with self._transaction() as session:
            count = session.scalar(
                select(func.count())
                .select_from(Job)
                .where(Job.source_filename == filename)
            )
        return bool(count)

    def get(self, filename: str) -> Optional[Job]:
        with self._transaction() as session:
            return session.scalars(
                select(Job).where(Job.source_filename == filename)
            ).first()

    def list_retryable(self) -> List[Job]:
        """Return pending and failed jobs, oldest first."""

        stmt = (
            select(Job)
            .where(Job.status.in_([status.value for status in RETRYABLE_STATUSES]))
            .order_by(Job.created_at.asc(), Job.id.asc())
        )
        with self._transaction() as session:
            return list(session.scalars(stmt).all())

    def status_counts(self) -> Dict[JobStatus, int]:
        counts = {status: 0 for status in JobStatus}
        with self._transaction() as session:
            rows = session.execute(
                select(Job.status, func.count()).group_by(Job.status)
            ).all()
        for status, count in rows:
            counts[JobStatus(status)] = count
        return counts

    # ------------------------------------------------------------------
    def mark_succeeded(self, job_id: int, remote_id: str, remote_uri: str) -> None:
        self._update(
            job_id,
            status=JobStatus.UPLOADED.value,
            remote_id=remote_id,
            remote_uri=remote_uri,
            error_message=None,
        )

    def mark_failed(self, job_id: int, error_message: str) -> None:
        self._update(
            job_id,
            status=JobStatus.FAILED.value,
            remote_id=None,
            remote_uri=None,
            error_message=error_message,
        )

    def clear_error(self, job_id: int) -> None:
        """Drop the message of a previous failure before the job is re-attempted."""

        self._update(job_id, error_message=None)

    def _update(self, job_id: int, **values: Any) -> None:
        stmt = (
            update(Job)
            .where(Job.id == job_id)
            .values(updated_at=self._clock(), **values)
        )
        with self._transaction() as session:
            result = session.execute(stmt)
            if result.rowcount == 0:
                raise LedgerError(f"No job with id {job_id} in the ledger")
        LOGGER.debug("job %s updated: %s", job_id, sorted(values))


__all__ = ["JobLedger", "create_ledger_engine"]
