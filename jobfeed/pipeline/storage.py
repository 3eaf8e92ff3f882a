import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from db.base import Base
from db.schemas import Job
from jobfeed.errors import InvalidQueryError, QueryTimeoutError, StoreUnavailableError
from jobfeed.models.job import JOB_STATUSES, CandidateJob
from jobfeed.pipeline.dedup import fingerprint
from jobfeed.pipeline.normalize import build_search_vector

logger = logging.getLogger(__name__)

_engine = None
_Session = None

# Keeps IN (...) lists well under driver parameter limits
_HASH_CHUNK = 500


def init_engine(db_url: str):
    global _engine, _Session
    kwargs = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
    if _engine is not None:
        _engine.dispose()
    _engine = create_engine(db_url, future=True, **kwargs)
    Base.metadata.create_all(_engine)
    _Session = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def ensure_engine(db_url: str):
    """Initialize once; later calls keep whatever engine is already bound."""
    if _engine is None:
        return init_engine(db_url)
    return _engine


def dispose_engine():
    global _engine, _Session
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _Session = None


@contextmanager
def get_session():
    if _Session is None:
        raise RuntimeError("storage not initialized; call init_engine() first")
    sess = _Session()
    try:
        yield sess
        sess.commit()
    except Exception:
        sess.rollback()
        raise
    finally:
        sess.close()


# --- writes ------------------------------------------------------------------

def _row_values(c: CandidateJob, content_hash: str) -> dict:
    values = c.model_dump()
    published = values.get("published_at") or datetime.now(timezone.utc)
    if published.tzinfo is not None:
        published = published.astimezone(timezone.utc)
    values["published_at"] = published
    values["content_hash"] = content_hash
    values["search_vector"] = build_search_vector(values)
    return values


def insert_if_new(sess: Session, candidate: CandidateJob, content_hash: Optional[str] = None) -> bool:
    """
    Insert unless a row with the same content hash exists.
    Single statement (ON CONFLICT DO NOTHING) so concurrent runs cannot double-insert.
    """
    values = _row_values(candidate, content_hash or fingerprint(candidate))
    dialect = sess.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = insert(Job).values(**values).on_conflict_do_nothing(index_elements=["content_hash"])
        return sess.execute(stmt).rowcount == 1

    try:
        with sess.begin_nested():
            sess.add(Job(**values))
        return True
    except IntegrityError:
        return False


def update_status(sess: Session, job_id: int, status: str) -> Optional[Job]:
    if status not in JOB_STATUSES:
        raise InvalidQueryError(f"status must be one of {', '.join(JOB_STATUSES)}")
    job = sess.get(Job, job_id)
    if job is None:
        return None
    job.status = status
    sess.flush()
    return job


# --- reads -------------------------------------------------------------------

def existing_hashes(sess: Session, hashes: Iterable[str]) -> set[str]:
    wanted = list(dict.fromkeys(hashes))
    found: set[str] = set()
    for i in range(0, len(wanted), _HASH_CHUNK):
        chunk = wanted[i:i + _HASH_CHUNK]
        rows = sess.query(Job.content_hash).filter(Job.content_hash.in_(chunk)).all()
        found.update(h for (h,) in rows)
    return found


def find_by_id(sess: Session, job_id: int) -> Optional[Job]:
    return sess.get(Job, job_id)


@contextmanager
def query_deadline(sess: Session, timeout_s: Optional[float]):
    """
    Abort the enclosed store queries once timeout_s elapses.

    PostgreSQL gets a transaction-local statement_timeout; SQLite gets a
    progress handler that interrupts the running statement. Driver errors are
    re-raised as QueryTimeoutError / StoreUnavailableError.
    """
    deadline = time.monotonic() + timeout_s if timeout_s and timeout_s > 0 else None
    reset = None
    try:
        if deadline is not None:
            conn = sess.connection()
            if conn.dialect.name == "postgresql":
                conn.exec_driver_sql(f"SET LOCAL statement_timeout = {int(timeout_s * 1000)}")
            elif conn.dialect.name == "sqlite":
                raw = conn.connection.driver_connection
                raw.set_progress_handler(lambda: int(time.monotonic() > deadline), 1000)
                reset = lambda: raw.set_progress_handler(None, 0)  # noqa: E731
        yield
    except OperationalError as e:
        cancelled = getattr(e.orig, "pgcode", None) == "57014"  # query_canceled
        if deadline is not None and (cancelled or time.monotonic() >= deadline):
            logger.warning("query aborted after %.2fs", timeout_s)
            raise QueryTimeoutError(f"query exceeded {timeout_s:g}s") from e
        logger.error("store unavailable: %s", e.orig)
        raise StoreUnavailableError("job store unavailable") from e
    finally:
        if reset is not None:
            reset()
