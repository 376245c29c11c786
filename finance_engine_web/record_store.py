"""Persistence layer for a user's finance records.

Records (transactions, categories, goals, loans) are stored as JSON payloads
produced by ``finance_engine.serialization``, one row per record, keyed by the
user token. The store defaults to SQLite for local development but accepts
any SQLAlchemy-compatible URL.

Updates that depend on the current state of a record (a loan payment, a goal
contribution) go through :meth:`RecordStore.update_locked`, which reads the
row ``FOR UPDATE`` and writes the new state in the same transaction, so two
payments on the same loan never interleave. SQLite ignores ``FOR UPDATE``;
there every transaction starts with ``BEGIN IMMEDIATE`` and takes the
database write lock before its first read.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, create_engine, event, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker

from finance_engine.data_models import Snapshot
from finance_engine.errors import InvalidInput
from finance_engine.serialization import RECORD_CODECS, snapshot_from_dict

logger = logging.getLogger(__name__)

Base = declarative_base()

RECORD_KINDS = tuple(RECORD_CODECS)
SINGULAR = {"transactions": "transaction", "categories": "category", "goals": "goal", "loans": "loan"}


class RecordModel(Base):
    __tablename__ = "finance_records"
    __table_args__ = (UniqueConstraint("user_token", "kind", "record_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_token = Column(String(64), index=True, nullable=False)
    kind = Column(String(32), nullable=False)
    record_id = Column(String(64), nullable=False)
    payload_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class RecordStore:
    """Database-backed store of per-user finance records."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        if self._engine.dialect.name == "sqlite":
            _begin_immediate(self._engine)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in RECORD_KINDS:
            raise ValueError(f"Unknown record kind: {kind}")

    def list_records(self, user_token: str, kind: str) -> List[Dict[str, Any]]:
        self._check_kind(kind)
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[RecordModel] = session.execute(
                select(RecordModel)
                .where(RecordModel.user_token == user_token, RecordModel.kind == kind)
                .order_by(RecordModel.id.asc())
            ).scalars()
            return [json.loads(row.payload_json) for row in rows]

    def snapshot(self, user_token: str) -> Snapshot:
        """Read every record of a user into an engine snapshot."""
        return snapshot_from_dict({kind: self.list_records(user_token, kind) for kind in RECORD_KINDS})

    def add(self, user_token: str, kind: str, payload: Dict[str, Any]) -> None:
        self._check_kind(kind)
        row = RecordModel(
            user_token=user_token,
            kind=kind,
            record_id=str(payload["id"]),
            payload_json=json.dumps(payload),
        )
        with self._session_factory() as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                raise InvalidInput(f"A {SINGULAR[kind]} with id {payload['id']} already exists") from exc
        logger.debug("Stored %s record %s for %s", kind, payload["id"], user_token)

    def delete(self, user_token: str, kind: str, record_id: str) -> bool:
        """Delete one record; returns False when it did not exist."""
        self._check_kind(kind)
        with self._session_factory() as session:
            row = self._find(session, user_token, kind, record_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.debug("Deleted %s record %s for %s", kind, record_id, user_token)
        return True

    def update_locked(
        self,
        user_token: str,
        kind: str,
        record_id: str,
        update: Callable[[Dict[str, Any]], Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        """Apply ``update`` to a stored record under a row lock.

        ``update`` receives the current payload and returns the new one.
        Returns the new payload, or None when the record does not exist.
        Exceptions raised by ``update`` roll the transaction back.
        """
        self._check_kind(kind)
        with self._session_factory() as session:
            with session.begin():
                row = self._find(session, user_token, kind, record_id, lock=True)
                if row is None:
                    return None
                payload = update(json.loads(row.payload_json))
                row.payload_json = json.dumps(payload)
        return payload

    @staticmethod
    def _find(session, user_token: str, kind: str, record_id: str, lock: bool = False) -> Optional[RecordModel]:
        query = select(RecordModel).where(
            RecordModel.user_token == user_token,
            RecordModel.kind == kind,
            RecordModel.record_id == str(record_id),
        )
        if lock:
            query = query.with_for_update()
        return session.execute(query).scalars().first()


def _begin_immediate(engine) -> None:
    # pysqlite defers BEGIN until the first write; take the lock up front
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_store_from_env(url: str | None) -> RecordStore:
    return RecordStore(url or "sqlite:///finance_records.sqlite3")
