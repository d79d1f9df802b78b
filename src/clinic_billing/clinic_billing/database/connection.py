from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation, except inside
    ``transaction()`` where every repository call on the same thread shares
    one connection and commits (or rolls back) together.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def active_connection(self):
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.active_connection() is not None:
            # Nested: the outermost block owns commit/rollback.
            yield
            return

        conn = self.connect()
        conn.start_transaction()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            logger.warning("Rolling back transaction", exc_info=True)
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()
