#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 10:31:19 krylon>
#
# /data/code/python/trackerlog/recorder.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.recorder

(c) 2026 Benjamin Walkenhorst

Contacts are reported by the capture layer, which must not wait for the
database. They go into a bounded queue that a single writer thread drains.
"""

import logging
import traceback
from dataclasses import dataclass, field
from queue import Queue, ShutDown
from threading import RLock, Thread
from typing import Final, Optional

import lmdb

from trackerlog import common
from trackerlog.cache import CacheDB
from trackerlog.database import NOT_INSERTED, Database, DBError
from trackerlog.model import Contact


@dataclass(kw_only=True, slots=True)
class ContactRecorder:
    """ContactRecorder writes reported contacts to the Database in the background."""

    db: Database
    qsize: int = 256
    seen: Optional[CacheDB] = None
    log: logging.Logger = field(default_factory=lambda: common.get_logger("recorder"))
    lock: RLock = field(default_factory=RLock)
    _active: bool = False
    contactQ: Queue[Contact] = field(init=False)
    worker: Optional[Thread] = field(init=False, default=None)
    inserted: int = 0
    duplicate: int = 0
    failed: int = 0

    def __post_init__(self) -> None:
        assert self.qsize > 0
        self.contactQ = Queue(self.qsize)

    @property
    def active(self) -> bool:
        """Return the ContactRecorder's active flag."""
        with self.lock:
            return self._active

    def start(self) -> None:
        """Open the Database and start the writer thread."""
        with self.lock:
            if self._active:
                return

            self.db.open()
            if self.db.created and self.seen is not None:
                self.log.info("Database was freshly created, purge hostname cache.")
                self.seen.purge()

            if self.worker is not None:
                # A Queue that was shut down cannot be used again.
                self.contactQ = Queue(self.qsize)

            self._active = True
            self.worker = Thread(target=self._writer, name="contact_writer", daemon=False)
            self.worker.start()

    def stop(self) -> None:
        """Stop accepting contacts, write out the ones already queued, and wait for the writer."""
        with self.lock:
            if not self._active:
                return
            self._active = False
            worker: Final[Optional[Thread]] = self.worker

        self.contactQ.shutdown()
        if worker is not None:
            worker.join()
        self.log.debug("ContactRecorder stopped: %d inserted, %d duplicate, %d failed",
                       self.inserted,
                       self.duplicate,
                       self.failed)

    def flush(self) -> None:
        """Block until every queued contact has been processed."""
        self.contactQ.join()

    def record_contact(self, app_id: str, remote_ip: str, hostname: str) -> bool:
        """Queue a contact for writing.

        Return True if the contact was queued, False if it was dropped, either
        because its hostname is known to be in the history already, or
        because the recorder was stopped. Blocks while the queue is full.
        """
        if self.seen is not None:
            with self.seen.tx() as tx:
                if hostname in tx:
                    with self.lock:
                        self.duplicate += 1
                    return False

        contact: Final[Contact] = Contact(app_id=app_id, remote_ip=remote_ip, hostname=hostname)

        try:
            self.contactQ.put(contact)
        except ShutDown:
            self.log.error("ContactRecorder was stopped, dropping contact %s -> %s",
                           app_id,
                           hostname)
            return False

        return True

    def _remember(self, hostname: str) -> None:
        if self.seen is None:
            return
        try:
            with self.seen.tx(True) as tx:
                tx[hostname] = "1"
        except lmdb.Error as err:
            self.log.error("Cannot add %s to hostname cache: %s",
                           hostname,
                           err)

    def _writer(self) -> None:
        """Take contacts from the queue and add them to the database."""
        self.log.info("contact_writer coming right up.")
        try:
            while True:
                try:
                    contact: Contact = self.contactQ.get()
                except ShutDown:
                    break

                try:
                    rid: int = self.db.record(contact.app_id,
                                              contact.remote_ip,
                                              contact.hostname)
                except DBError as err:
                    self.log.error("%s recording contact %s -> %s: %s\n%s\n",
                                   err.__class__.__name__,
                                   contact.app_id,
                                   contact.hostname,
                                   err,
                                   "\n".join(traceback.format_exception(err)))
                    with self.lock:
                        self.failed += 1
                else:
                    with self.lock:
                        if rid == NOT_INSERTED:
                            self.duplicate += 1
                        else:
                            self.inserted += 1
                    self._remember(contact.hostname)
                finally:
                    self.contactQ.task_done()
        finally:
            self.log.info("contact_writer is quitting now.")


# Local Variables: #
# python-indent: 4 #
# End: #
