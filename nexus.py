#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 13:40:26 krylon>
#
# /data/code/python/trackerlog/nexus.py
# created on 20. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.nexus

(c) 2026 Benjamin Walkenhorst
"""

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Optional

from trackerlog import common
from trackerlog.aggregator import Aggregator
from trackerlog.cache import Cache, CacheDB, CacheType
from trackerlog.common import Config
from trackerlog.database import Database
from trackerlog.model import HistoryRecord, TrackerNode
from trackerlog.recorder import ContactRecorder
from trackerlog.registry import CompanyRegistry, LoadReport, load_file


@dataclass(kw_only=True, slots=True)
class Nexus:
    """Nexus brings together all the moving parts, so to speak.

    If no registry is given, the domain list named in the configuration is
    loaded.
    """

    cfg: Config = field(default_factory=common.load_config)
    registry: Optional[CompanyRegistry] = None
    report: Optional[LoadReport] = field(init=False, default=None)
    log: logging.Logger = field(default_factory=lambda: common.get_logger("nexus"))
    lock: RLock = field(default_factory=RLock)
    db: Database = field(init=False)
    recorder: ContactRecorder = field(init=False)
    aggregator: Aggregator = field(init=False)

    def __post_init__(self) -> None:
        if self.registry is None:
            self.registry, self.report = load_file(self.cfg.registry_path,
                                                   self.cfg.strict_registry)
            self.log.info("Loaded %d domains from %s",
                          len(self.registry),
                          self.cfg.registry_path)

        seen: Optional[CacheDB] = None
        if self.cfg.hostname_cache:
            seen = Cache().get_db(CacheType.HostnameCache, self.cfg.cache_ttl)

        self.db = Database(self.registry)
        self.recorder = ContactRecorder(db=self.db, qsize=self.cfg.queue_size, seen=seen)
        self.aggregator = Aggregator(db=self.db, registry=self.registry)
        self.recorder.start()

    def record_contact(self, app_id: str, remote_ip: str, hostname: str) -> bool:
        """Report that <app_id> contacted <hostname>. Does not wait for the database."""
        with self.lock:
            if not self.recorder.active:
                self.log.debug("Restart ContactRecorder after close()")
                self.recorder.start()
            return self.recorder.record_contact(app_id, remote_ip, hostname)

    def flush(self) -> None:
        """Wait until all reported contacts are in the database."""
        self.recorder.flush()

    def app_tracker_counts(self) -> dict[str, int]:
        """Return the number of distinct tracker Companies per app."""
        return self.aggregator.app_tracker_counts()

    def tracker_hierarchy(self, app_id: str) -> list[TrackerNode]:
        """Return the tracker Companies contacted by <app_id>, grouped by owner."""
        return self.aggregator.tracker_hierarchy(app_id)

    def export_raw(self, app_id: str) -> list[HistoryRecord]:
        """Return the raw history of <app_id>."""
        return self.db.query_by_app(app_id)

    def total_record_count(self) -> int:
        """Return the number of records in the history."""
        return self.db.count()

    def close(self) -> None:
        """Write out pending contacts and close the database.

        Any later call re-opens the database.
        """
        with self.lock:
            self.recorder.stop()
            self.db.close()


# Local Variables: #
# python-indent: 4 #
# End: #
