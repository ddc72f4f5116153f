#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-21 14:19:02 krylon>
#
# /data/code/python/trackerlog/test_nexus.py
# created on 21. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.test_nexus

(c) 2026 Benjamin Walkenhorst
"""

import json
import os
import shutil
import unittest
from datetime import datetime
from typing import Any, Final, Optional

from trackerlog import common
from trackerlog.model import HistoryRecord, TrackerNode
from trackerlog.nexus import Nexus

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_nexus_%Y%m%d_%H%M%S"))

domains: Final[list[dict[str, Any]]] = [
    {"country": "US", "owner_name": "Acme", "root_parent": "BigCorp", "doms": ["acme.com"]},
    {"country": "US", "owner_name": "BigCorp", "root_parent": None, "necessary": True,
     "doms": ["bigcorp.com"]},
    {"country": "US", "doms": ["broken.com"]},
    {"country": "US", "owner_name": "Late", "doms": ["late.com"]},
    {"country": "DE", "owner_name": "AdsCo", "doms": ["Ads.Acme.com"]},
]

config: Final[str] = """
strict_registry = false
queue_size = 8
cache_ttl = 600
colour = "blue"
"""


class TestNexus(unittest.TestCase):
    """Test the public operations, as used by the capture layer and the UI."""

    _nx: Optional[Nexus] = None

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)
        with open(common.path.registry, "w", encoding="utf-8") as fh:
            json.dump(domains, fh)
        with open(common.path.config, "w", encoding="utf-8") as fh:
            fh.write(config)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        if cls._nx is not None:
            cls._nx.close()
        shutil.rmtree(test_dir, ignore_errors=True)

    @classmethod
    def nx(cls, n: Optional[Nexus] = None) -> Nexus:
        """Set or return the Nexus."""
        if n is not None:
            cls._nx = n
        if cls._nx is not None:
            return cls._nx

        raise ValueError("Nexus instance is None")

    def test_01_create(self) -> None:
        """Create a Nexus from the configuration file."""
        n: Final[Nexus] = Nexus()

        self.assertFalse(n.cfg.strict_registry)
        self.assertEqual(n.cfg.queue_size, 8)
        self.assertEqual(n.cfg.cache_ttl, 600)
        self.assertTrue(n.cfg.hostname_cache)
        self.assertIsNotNone(n.report)
        self.assertEqual(n.report.loaded, 4)
        self.assertEqual([m.index for m in n.report.malformed], [2])
        self.assertTrue(n.registry.is_necessary("BigCorp"))
        self.assertEqual(n.registry.resolve("late.com").name, "Late")
        self.nx(n)

    def test_02_record(self) -> None:
        """Report contacts and look at the history."""
        n: Final[Nexus] = self.nx()

        n.record_contact("appA", "10.0.0.1", "x.com")
        n.record_contact("appB", "10.0.0.2", "x.com")
        n.record_contact("appA", "10.0.0.3", "t1.acme.com")
        n.record_contact("appA", "10.0.0.4", "t2.acme.com")
        n.record_contact("appA", "10.0.0.5", "bigcorp.com")
        n.record_contact("appA", "10.0.0.6", "unknown.org")
        n.flush()

        self.assertEqual(n.total_record_count(), 5)
        recs: Final[list[HistoryRecord]] = n.export_raw("appA")
        self.assertEqual(len(recs), 5)
        self.assertEqual(recs[0].hostname, "x.com")
        self.assertEqual(n.export_raw("appB"), [])

    def test_03_aggregate(self) -> None:
        """Count and group the trackers."""
        n: Final[Nexus] = self.nx()

        self.assertEqual(n.app_tracker_counts(), {"appA": 2})

        tree: Final[list[TrackerNode]] = n.tracker_hierarchy("appA")
        self.assertEqual(len(tree), 1)
        self.assertEqual(tree[0].name, "BigCorp")
        self.assertEqual([c.name for c in tree[0].children], ["Acme", "BigCorp"])

    def test_04_reopen(self) -> None:
        """Every operation works after close(), and sees the same data."""
        n: Final[Nexus] = self.nx()

        n.close()
        self.assertEqual(n.total_record_count(), 5)
        n.close()
        self.assertEqual(n.app_tracker_counts(), {"appA": 2})
        n.close()
        self.assertEqual(len(n.export_raw("appA")), 5)
        n.close()
        self.assertEqual([o.name for o in n.tracker_hierarchy("appA")], ["BigCorp"])
        n.close()
        self.assertTrue(n.record_contact("appC", "10.0.0.7", "late.com"))
        n.flush()
        self.assertEqual(n.total_record_count(), 6)
        self.assertEqual(n.app_tracker_counts(), {"appA": 2, "appC": 1})

    def test_05_exact_hostname(self) -> None:
        """Hostnames are stored and resolved exactly as reported."""
        n: Final[Nexus] = self.nx()

        self.assertTrue(n.record_contact("appD", "10.0.0.8", "Ads.Acme.com"))
        n.flush()

        recs: Final[list[HistoryRecord]] = n.export_raw("appD")
        self.assertEqual(len(recs), 1)
        self.assertEqual(recs[0].hostname, "Ads.Acme.com")
        self.assertEqual(recs[0].company_name, "AdsCo")
        self.assertEqual(n.app_tracker_counts()["appD"], 1)
        self.assertEqual([o.name for o in n.tracker_hierarchy("appD")], ["AdsCo"])


# Local Variables: #
# python-indent: 4 #
# End: #
