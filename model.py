#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:10:37 krylon>
#
# /data/code/python/trackerlog/model.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.model

(c) 2026 Benjamin Walkenhorst
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, eq=False, slots=True, kw_only=True)
class Company:
    """Company is a commercial entity identified by a set of network domains.

    Companies compare by identity, each entry in the domain list yields
    exactly one Company.
    """

    name: str
    owner: Optional[str] = None
    country: str = ""
    necessary: bool = False

    @property
    def root(self) -> str:
        """Return the name of the entity the Company rolls up to."""
        if self.owner is None or self.owner == "null":
            return self.name
        return self.owner


@dataclass(slots=True, kw_only=True)
class HistoryRecord:
    """HistoryRecord is the first contact, store-wide, with a given hostname."""

    record_id: int = -1
    app_id: str
    remote_ip: str
    hostname: str
    company_name: Optional[str] = None
    company_owner: Optional[str] = None
    timestamp: datetime


@dataclass(slots=True, kw_only=True)
class Contact:
    """Contact is an app talking to a remote host, as reported by the capture layer."""

    app_id: str
    remote_ip: str
    hostname: str


@dataclass(slots=True, kw_only=True)
class TrackerNode:
    """TrackerNode is a node in the owner/company hierarchy."""

    name: str
    owner: Optional[str] = None
    children: list['TrackerNode'] = field(default_factory=list)


# Local Variables: #
# python-indent: 4 #
# End: #
