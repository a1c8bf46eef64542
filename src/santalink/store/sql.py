"""Assignment store backed by a relational database via SQLAlchemy.

One table, assignments, keyed by the giver's token. A batch upsert runs
inside a single transaction; Session.merge makes re-inserting a giver
overwrite the existing row.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from sqlalchemy import String, Text, create_engine, delete, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from santalink.errors import StoreUnavailable
from santalink.models import Assignment
from santalink.store.base import AssignmentStore

logger = logging.getLogger("santalink.store")


class Base(DeclarativeBase):
    pass


class AssignmentRow(Base):
    __tablename__ = "assignments"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    giver: Mapped[str] = mapped_column(Text)
    receiver_token: Mapped[str] = mapped_column(String(64))
    receiver: Mapped[str] = mapped_column(Text)

    def to_assignment(self) -> Assignment:
        return Assignment(
            giver_token=self.token,
            giver_name=self.giver,
            receiver_token=self.receiver_token,
            receiver_name=self.receiver,
        )


class SqlStore(AssignmentStore):
    mode = "database"

    def __init__(self, database_url: str, timeout: float = 5.0) -> None:
        self._url = make_url(database_url)
        try:
            self._engine = create_engine(self._url, **_engine_options(self._url, timeout))
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"cannot configure database: {exc}") from exc
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def upsert(self, pairs: Iterable[Assignment]) -> None:
        batch = list(pairs)
        with self._session() as session, session.begin():
            for pair in batch:
                session.merge(
                    AssignmentRow(
                        token=pair.giver_token,
                        giver=pair.giver_name,
                        receiver_token=pair.receiver_token,
                        receiver=pair.receiver_name,
                    )
                )

    def get_all(self) -> list[Assignment]:
        with self._session() as session:
            rows = session.scalars(select(AssignmentRow).order_by(AssignmentRow.giver))
            return [row.to_assignment() for row in rows]

    def get_by_token(self, token: str) -> Assignment | None:
        with self._session() as session:
            row = session.get(AssignmentRow, token)
            return row.to_assignment() if row is not None else None

    def reset(self) -> None:
        with self._session() as session, session.begin():
            session.execute(delete(AssignmentRow))

    def ping(self) -> None:
        with self._session() as session:
            session.scalar(select(func.count()).select_from(AssignmentRow))

    def close(self) -> None:
        self._engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            self._ensure_schema()
            with Session(self._engine) as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"database error: {exc}") from exc

    def _ensure_schema(self) -> None:
        # Created on first use, not at startup.
        if self._schema_ready:
            return
        with self._schema_lock:
            if self._schema_ready:
                return
            Base.metadata.create_all(self._engine)
            self._schema_ready = True
        logger.info(
            "Assignment table ready on %s",
            self._url.render_as_string(hide_password=True),
        )


def _engine_options(url, timeout: float) -> dict:
    backend = url.get_backend_name()
    if backend == "sqlite":
        options: dict = {
            "connect_args": {"timeout": timeout, "check_same_thread": False},
        }
        if url.database in (None, "", ":memory:"):
            # A private in-memory database must share one connection.
            options["poolclass"] = StaticPool
        else:
            options["pool_timeout"] = timeout
        return options

    options = {"pool_pre_ping": True, "pool_timeout": timeout}
    if backend in ("postgresql", "mysql"):
        options["connect_args"] = {"connect_timeout": max(1, int(timeout))}
    return options
