"""Scratch-file-backed SQLite store for a player's persisted state.

Player save files embed their SQLite database as a plain byte blob. The
store copies that blob into a temporary file, opens it through SQLAlchemy,
and hands the (possibly modified) bytes back once it is finalized.
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Row
from sqlalchemy.pool import NullPool

from ..errors import StateStoreError

logger = logging.getLogger(__name__)


class StateStore:
    """A SQLite database materialized in its own scratch file.

    The store exclusively owns the scratch file. ``into_bytes`` is the
    terminal operation: it closes the connection, returns the file's bytes
    and deletes the file. ``discard`` does the same without reading.

    Example:
        with open("pocketcasts.db", "rb") as f:
            store = StateStore.from_stream(f)
        rows = store.query("SELECT uuid FROM podcasts WHERE title = :title", {"title": "Foo"})
        data = store.into_bytes()
    """

    def __init__(self, path: str, connection: Connection):
        """Wrap an open connection to the scratch file at ``path``.

        Use ``from_stream`` or ``open`` rather than calling this directly.
        """
        self.path = path
        self._connection: Optional[Connection] = connection

    @classmethod
    def from_stream(cls, stream: BinaryIO, temp_dir: Optional[str] = None) -> "StateStore":
        """
        Copy a binary stream into a new scratch file and open it.

        Parameters:
            stream (BinaryIO): Readable stream holding a SQLite database image.
            temp_dir (str | None): Directory for the scratch file; the system default when None.

        Returns:
            StateStore: An open store backed by the scratch copy.
        """
        fd, path = tempfile.mkstemp(suffix=".db", dir=temp_dir)
        try:
            with os.fdopen(fd, "wb") as scratch:
                shutil.copyfileobj(stream, scratch)

            engine = create_engine(f"sqlite:///{path}", poolclass=NullPool)
            connection = engine.connect()
        except Exception:
            os.remove(path)
            raise

        logger.debug(f"Opened state store scratch file: {path}")
        return cls(path, connection)

    @classmethod
    def open(cls, path: Union[str, Path], temp_dir: Optional[str] = None) -> "StateStore":
        """Open a scratch copy of the SQLite file at ``path``; the original is never written."""
        with open(path, "rb") as f:
            return cls.from_stream(f, temp_dir=temp_dir)

    @property
    def closed(self) -> bool:
        return self._connection is None

    def _require_connection(self) -> Connection:
        if self._connection is None:
            raise StateStoreError("State store has already been finalized")
        return self._connection

    def query(self, statement: str, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        """Run a parameterized SELECT and return all rows."""
        connection = self._require_connection()
        if connection.in_transaction():
            return connection.execute(text(statement), params or {}).fetchall()
        with connection.begin():
            return connection.execute(text(statement), params or {}).fetchall()

    def execute(self, statement: str, params: Optional[Dict[str, Any]] = None) -> int:
        """Run a parameterized write statement.

        Outside of ``transaction()`` the statement is committed immediately.

        Returns:
            Number of rows affected
        """
        connection = self._require_connection()
        if connection.in_transaction():
            return connection.execute(text(statement), params or {}).rowcount
        with connection.begin():
            return connection.execute(text(statement), params or {}).rowcount

    @contextmanager
    def transaction(self) -> Iterator["StateStore"]:
        """Group several statements into one transaction, rolled back on error."""
        connection = self._require_connection()
        with connection.begin():
            yield self

    def into_bytes(self) -> bytes:
        """
        Finalize the store and return the scratch database's bytes.

        The connection is closed first so every committed page is on disk.
        The store cannot be used afterwards.

        Returns:
            bytes: The complete SQLite database image.

        Raises:
            StateStoreError: If the store was already finalized or a transaction is still open.
        """
        connection = self._require_connection()
        if connection.in_transaction():
            raise StateStoreError("Cannot finalize state store with a pending transaction")

        self._close(connection)
        try:
            with open(self.path, "rb") as f:
                data = f.read()
        finally:
            self._remove_scratch()

        logger.debug(f"Finalized state store ({len(data)} bytes)")
        return data

    def discard(self) -> None:
        """Close the store and delete its scratch file without reading it."""
        if self._connection is not None:
            self._close(self._connection)
        self._remove_scratch()

    def _close(self, connection: Connection) -> None:
        engine = connection.engine
        self._connection = None
        connection.close()
        engine.dispose()

    def _remove_scratch(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def __enter__(self) -> "StateStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.discard()
