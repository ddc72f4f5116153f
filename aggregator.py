#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 11:58:03 krylon>
#
# /data/code/python/trackerlog/aggregator.py
# created on 20. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.aggregator

(c) 2026 Benjamin Walkenhorst

Summaries of the contact history. Hostnames are resolved against the registry
at query time, the company columns stored in the history are not used here.

Every query scans the history, which is fine for one person's devices, but
would need counters or an index on company to handle much larger volumes.
"""

import logging
from dataclasses import dataclass, field
from typing import Final, Optional

from trackerlog import common
from trackerlog.database import Database
from trackerlog.model import Company, TrackerNode
from trackerlog.registry import CompanyRegistry


@dataclass(kw_only=True, slots=True)
class Aggregator:
    """Aggregator computes per-app summaries of the contact history."""

    db: Database
    registry: CompanyRegistry
    log: logging.Logger = field(default_factory=lambda: common.get_logger("aggregator"))

    def app_tracker_counts(self) -> dict[str, int]:
        """Return the number of distinct Companies each app has contacted."""
        companies: dict[str, set[Company]] = {}

        with self.db:
            contacts: Final[list[tuple[str, str]]] = self.db.contacts()

        for app_id, hostname in contacts:
            seen: set[Company] = companies.setdefault(app_id, set())
            company: Optional[Company] = self.registry.resolve(hostname)
            if company is not None:
                seen.add(company)

        counts: Final[dict[str, int]] = {app: len(cset) for app, cset in companies.items()}
        self.log.debug("Counted trackers for %d apps", len(counts))
        return counts

    def tracker_hierarchy(self, app_id: str) -> list[TrackerNode]:
        """Return the Companies contacted by <app_id>, grouped by their owners.

        Owners are sorted by name, as are the Companies below each owner.
        """
        owners: dict[str, TrackerNode] = {}
        names: dict[str, set[str]] = {}

        with self.db:
            hostnames: Final[list[str]] = self.db.hostnames_by_app(app_id)

        for hostname in hostnames:
            company: Optional[Company] = self.registry.resolve(hostname)
            if company is None:
                continue

            root: str = company.root
            node: Optional[TrackerNode] = owners.get(root)
            if node is None:
                node = TrackerNode(name=root)
                owners[root] = node
                names[root] = set()

            if company.name in names[root]:
                continue

            names[root].add(company.name)
            node.children.append(TrackerNode(name=company.name, owner=root))

        tree: Final[list[TrackerNode]] = sorted(owners.values(), key=lambda x: x.name)
        for node in tree:
            node.children.sort(key=lambda x: x.name)

        return tree


# Local Variables: #
# python-indent: 4 #
# End: #
