#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-21 09:36:55 krylon>
#
# /data/code/python/trackerlog/test_aggregator.py
# created on 21. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.test_aggregator

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime
from typing import Any, Final, Optional

from trackerlog import common
from trackerlog.aggregator import Aggregator
from trackerlog.database import Database
from trackerlog.model import TrackerNode
from trackerlog.registry import CompanyRegistry

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_aggregator_%Y%m%d_%H%M%S"))

domains: Final[list[dict[str, Any]]] = [
    {"country": "US", "owner_name": "Acme", "root_parent": "BigCorp",
     "doms": ["acme.com", "acme-cdn.net"]},
    {"country": "US", "owner_name": "BigCorp", "root_parent": None, "doms": ["bigcorp.com"]},
    {"country": "DE", "owner_name": "Zeta", "root_parent": "null", "doms": ["zeta.de"]},
    {"country": "DE", "owner_name": "Beta", "root_parent": "Zeta", "doms": ["beta.de"]},
    {"country": "SE", "owner_name": "Alpha", "doms": ["alpha.se"]},
]

# (app, ip, hostname)
contacts: Final[list[tuple[str, str, str]]] = [
    ("app.one", "10.0.0.1", "a.acme.com"),
    ("app.one", "10.0.0.2", "b.acme.com"),
    ("app.one", "10.0.0.3", "static.acme-cdn.net"),
    ("app.one", "10.0.0.4", "bigcorp.com"),
    ("app.one", "10.0.0.5", "unknown.example.org"),
    ("app.two", "10.0.1.1", "zeta.de"),
    ("app.two", "10.0.1.2", "www.beta.de"),
    ("app.two", "10.0.1.3", "api.alpha.se"),
    ("app.two", "10.0.1.4", "x.bigcorp.com"),
    ("app.three", "10.0.2.1", "nothing.example.net"),
    # Already recorded for app.one, so app.two never gets it.
    ("app.two", "10.0.1.5", "a.acme.com"),
]


class TestAggregator(unittest.TestCase):
    """Test the summaries of the contact history."""

    _agg: Optional[Aggregator] = None
    registry: CompanyRegistry

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        cls.registry = CompanyRegistry.from_entries(domains)
        db: Final[Database] = Database(cls.registry)
        for c in contacts:
            db.record(*c)
        cls._agg = Aggregator(db=db, registry=cls.registry)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        if cls._agg is not None:
            cls._agg.db.close()
        shutil.rmtree(test_dir, ignore_errors=True)

    @classmethod
    def agg(cls) -> Aggregator:
        """Return the Aggregator."""
        if cls._agg is not None:
            return cls._agg

        raise ValueError("Aggregator instance is None")

    def test_01_counts(self) -> None:
        """Count distinct Companies per app."""
        counts: Final[dict[str, int]] = self.agg().app_tracker_counts()

        self.assertEqual(counts, {
            "app.one": 2,
            "app.two": 4,
            "app.three": 0,
        })

    def test_02_hierarchy(self) -> None:
        """Group the Companies an app contacted by their owners."""
        tree: Final[list[TrackerNode]] = self.agg().tracker_hierarchy("app.one")

        self.assertEqual(len(tree), 1)
        self.assertEqual(tree[0].name, "BigCorp")
        self.assertEqual([c.name for c in tree[0].children], ["Acme", "BigCorp"])
        for c in tree[0].children:
            self.assertEqual(c.owner, "BigCorp")
            self.assertEqual(c.children, [])

    def test_03_hierarchy_sorted(self) -> None:
        """Owners and their Companies come out sorted by name."""
        tree: Final[list[TrackerNode]] = self.agg().tracker_hierarchy("app.two")

        self.assertEqual([o.name for o in tree], ["Alpha", "BigCorp", "Zeta"])
        self.assertEqual([c.name for c in tree[0].children], ["Alpha"])
        self.assertEqual([c.name for c in tree[1].children], ["BigCorp"])
        self.assertEqual([c.name for c in tree[2].children], ["Beta", "Zeta"])

    def test_04_hierarchy_empty(self) -> None:
        """Apps without known trackers yield an empty hierarchy."""
        self.assertEqual(self.agg().tracker_hierarchy("app.three"), [])
        self.assertEqual(self.agg().tracker_hierarchy("app.none"), [])

    def test_05_live_resolution(self) -> None:
        """Aggregation uses the registry it is given, not the stored company columns."""
        other: Final[CompanyRegistry] = CompanyRegistry.from_entries([
            {"country": "US", "owner_name": "Example", "doms": ["example.org", "example.net"]},
        ])
        agg: Final[Aggregator] = Aggregator(db=self.agg().db, registry=other)

        counts: Final[dict[str, int]] = agg.app_tracker_counts()
        self.assertEqual(counts["app.one"], 1)
        self.assertEqual(counts["app.two"], 0)
        self.assertEqual(counts["app.three"], 1)

        tree: Final[list[TrackerNode]] = agg.tracker_hierarchy("app.three")
        self.assertEqual([o.name for o in tree], ["Example"])


# Local Variables: #
# python-indent: 4 #
# End: #
