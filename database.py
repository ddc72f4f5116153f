#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 16:45:02 krylon>
#
# /data/code/python/trackerlog/database.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.database

(c) 2026 Benjamin Walkenhorst

The history of contacts between apps and remote hosts. Only the first contact
with any given hostname is kept, no matter which app made it.
"""

import sqlite3
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from threading import RLock
from typing import Final, Optional, Union

import krylib

from trackerlog import common
from trackerlog.common import TrackerError
from trackerlog.model import Company, HistoryRecord
from trackerlog.registry import CompanyRegistry


class DBError(TrackerError):
    """Base class for database-related exceptions."""


# Bumping the version throws away the existing history.
db_version: Final[int] = 1

NOT_INSERTED: Final[int] = -1

qinit: Final[list[str]] = [
    """
CREATE TABLE history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    app_id TEXT NOT NULL,
    remote_ip TEXT NOT NULL,
    hostname TEXT NOT NULL,
    company_name TEXT,
    company_owner TEXT,
    timestamp INTEGER DEFAULT 0
)
    """,
    "CREATE INDEX history_hostname_idx ON history (hostname)",
    f"PRAGMA user_version = {db_version}",
]

qdrop: Final[list[str]] = [
    "DROP INDEX IF EXISTS history_hostname_idx",
    "DROP TABLE IF EXISTS history",
]


class Query(Enum):
    """Query identifies a particular operation on the database."""

    HistoryAdd = auto()
    HistoryCountByHost = auto()
    HistoryCount = auto()
    HistoryGetByApp = auto()
    ContactGetAll = auto()
    ContactGetByApp = auto()


qdb: Final[dict[Query, str]] = {
    Query.HistoryAdd: """
INSERT INTO history (app_id, remote_ip, hostname, company_name, company_owner, timestamp)
VALUES (?, ?, ?, ?, ?, ?)
RETURNING id
    """,
    Query.HistoryCountByHost: "SELECT COUNT(id) FROM history WHERE hostname = ?",
    Query.HistoryCount: "SELECT COUNT(id) FROM history",
    Query.HistoryGetByApp: """
SELECT
    id,
    remote_ip,
    hostname,
    company_name,
    company_owner,
    timestamp
FROM history
WHERE app_id = ?
ORDER BY id
    """,
    Query.ContactGetAll: "SELECT DISTINCT app_id, hostname FROM history",
    Query.ContactGetByApp: "SELECT DISTINCT hostname FROM history WHERE app_id = ?",
}


class Database:
    """Database keeps the history of contacts.

    All operations are serialized by one lock. The connection is opened on
    first use and re-opened if the Database is used after close().
    """

    __slots__ = [
        "_db",
        "created",
        "lock",
        "log",
        "path",
        "registry",
    ]

    def __init__(self,
                 registry: CompanyRegistry,
                 path: Optional[Union[Path, str]] = None) -> None:
        if path is None:
            self.path = common.path.db
        else:
            match path:
                case x if isinstance(x, Path):
                    self.path = x
                case x if isinstance(x, str):
                    self.path = Path(x)

        self.registry = registry
        self.log = common.get_logger("database")
        self.lock = RLock()
        self.created = False
        self._db: Optional[sqlite3.Connection] = None

    @property
    def closed(self) -> bool:
        """Return True if the database connection is not open."""
        with self.lock:
            return self._db is None

    def open(self) -> sqlite3.Connection:
        """Return the database connection, opening it if neccessary."""
        with self.lock:
            if self._db is not None:
                return self._db

            self.log.debug("Open database at %s", self.path)
            conn: Optional[sqlite3.Connection] = None
            try:
                exist: Final[bool] = krylib.fexist(str(self.path))
                conn = sqlite3.connect(str(self.path), check_same_thread=False)
                conn.isolation_level = None

                cur: Final[sqlite3.Cursor] = conn.cursor()
                cur.execute("PRAGMA journal_mode = WAL")

                if not exist:
                    self.__create_db(conn)
                else:
                    cur.execute("PRAGMA user_version")
                    version: Final[int] = cur.fetchone()[0]
                    if version != db_version:
                        self.__upgrade_db(conn, version)
                    else:
                        self.created = False
            except sqlite3.Error as err:
                msg = f"Cannot open database at {self.path}: {err}"
                self.log.error(msg)
                if conn is not None:
                    conn.close()
                raise DBError(msg) from err

            self._db = conn
            return conn

    def __create_db(self, conn: sqlite3.Connection) -> None:
        """Initialize a freshly created database"""
        self.log.debug("Initialize fresh database at %s", self.path)
        with conn:
            for query in qinit:
                try:
                    cur: sqlite3.Cursor = conn.cursor()
                    cur.execute(query)
                except sqlite3.OperationalError as operr:
                    self.log.debug("%s executing init query: %s\n%s\n",
                                   operr.__class__.__name__,
                                   operr,
                                   query)
                    raise
        self.created = True
        self.log.debug("Database initialized successfully.")

    def __upgrade_db(self, conn: sqlite3.Connection, version: int) -> None:
        """Replace a database of a different schema version with a fresh one."""
        self.log.warning("Database has schema version %d, expected %d. Dropping history.",
                         version,
                         db_version)
        cur: Final[sqlite3.Cursor] = conn.cursor()
        for query in qdrop:
            cur.execute(query)
        self.__create_db(conn)

    def close(self) -> None:
        """Close the database connection."""
        with self.lock:
            if self._db is None:
                return
            self._db.close()
            self._db = None
            self.log.debug("Database at %s was closed.", self.path)

    def __enter__(self) -> 'Database':
        self.lock.acquire()
        return self

    def __exit__(self, ex_type, ex_val, tb):
        self.lock.release()
        return False

    def record(self, app_id: str, remote_ip: str, hostname: str) -> int:
        """Add a contact to the history, unless the hostname is already known.

        Return the ID of the new record, or NOT_INSERTED.
        """
        company: Final[Optional[Company]] = self.registry.resolve(hostname)
        cname: Optional[str] = None
        cowner: Optional[str] = None
        if company is not None:
            cname = company.name
            cowner = company.owner

        with self.lock:
            try:
                cur: Final[sqlite3.Cursor] = self.open().cursor()
                cur.execute(qdb[Query.HistoryCountByHost], (hostname, ))
                if cur.fetchone()[0] > 0:
                    return NOT_INSERTED

                stamp: Final[int] = int(datetime.now().timestamp() * 1000)
                cur.execute(qdb[Query.HistoryAdd], (app_id,
                                                    remote_ip,
                                                    hostname,
                                                    cname,
                                                    cowner,
                                                    stamp))
                row = cur.fetchone()
            except sqlite3.Error as err:
                msg = f"Cannot add {app_id} -> {hostname} to history: {err}"
                self.log.error(msg)
                raise DBError(msg) from err

        if row is None:
            msg = f"Adding {app_id} -> {hostname} did not return an ID"
            self.log.error(msg)
            raise DBError(msg)

        self.log.debug("Recorded contact %s -> %s (%s) as #%d",
                       app_id,
                       hostname,
                       cname,
                       row[0])
        return row[0]

    def query_by_app(self, app_id: str) -> list[HistoryRecord]:
        """Return all records of one app, in the order they were added."""
        with self.lock:
            cur: Final[sqlite3.Cursor] = self.open().cursor()
            cur.execute(qdb[Query.HistoryGetByApp], (app_id, ))
            records: list[HistoryRecord] = []

            for row in cur:
                rec: HistoryRecord = HistoryRecord(
                    record_id=row[0],
                    app_id=app_id,
                    remote_ip=row[1],
                    hostname=row[2],
                    company_name=row[3],
                    company_owner=row[4],
                    timestamp=datetime.fromtimestamp(row[5] / 1000),
                )
                records.append(rec)

        return records

    def count(self) -> int:
        """Return the total number of records."""
        with self.lock:
            cur: Final[sqlite3.Cursor] = self.open().cursor()
            cur.execute(qdb[Query.HistoryCount])
            return cur.fetchone()[0]

    def contacts(self) -> list[tuple[str, str]]:
        """Return all distinct pairs of app ID and hostname.

        Use with caution, this scans the entire history.
        """
        with self.lock:
            cur: Final[sqlite3.Cursor] = self.open().cursor()
            cur.execute(qdb[Query.ContactGetAll])
            return [(row[0], row[1]) for row in cur]

    def hostnames_by_app(self, app_id: str) -> list[str]:
        """Return the distinct hostnames contacted by one app."""
        with self.lock:
            cur: Final[sqlite3.Cursor] = self.open().cursor()
            cur.execute(qdb[Query.ContactGetByApp], (app_id, ))
            return [row[0] for row in cur]


# Local Variables: #
# python-indent: 4 #
# End: #
