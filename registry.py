#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 15:21:48 krylon>
#
# /data/code/python/trackerlog/registry.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.registry

(c) 2026 Benjamin Walkenhorst

The CompanyRegistry maps hostnames to the Companies that operate them. It is
built once from the domain list and is read-only afterwards, so it can be
shared between threads freely.
"""

import json
import logging
import pathlib
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, Mapping, Optional, Sequence, Union

from trackerlog import common
from trackerlog.common import TrackerError
from trackerlog.model import Company


class RegistryError(TrackerError):
    """RegistryError indicates a malformed entry in the domain list."""


@dataclass(kw_only=True, slots=True)
class MalformedEntry:
    """MalformedEntry describes an entry of the domain list that could not be parsed."""

    index: int
    reason: str


@dataclass(kw_only=True, slots=True)
class LoadReport:
    """LoadReport sums up what happened while loading the domain list."""

    loaded: int = 0
    domains: int = 0
    aborted: bool = False
    malformed: list[MalformedEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True if every entry was loaded."""
        return not self.aborted and len(self.malformed) == 0


@dataclass(frozen=True, kw_only=True, slots=True)
class CompanyRegistry:
    """CompanyRegistry resolves hostnames to Companies."""

    hosts: Mapping[str, Company] = field(default_factory=lambda: MappingProxyType({}))
    necessary: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> 'CompanyRegistry':
        """Return a registry that does not know any Company."""
        return cls()

    @classmethod
    def from_entries(cls, entries: Sequence[Any], strict: bool = True) -> 'CompanyRegistry':
        """Build a registry from the decoded domain list."""
        reg, _ = load(entries, strict)
        return reg

    @classmethod
    def from_file(cls,
                  src: Union[str, pathlib.Path],
                  strict: bool = True) -> 'CompanyRegistry':
        """Build a registry from a JSON file."""
        reg, _ = load_file(src, strict)
        return reg

    def __len__(self) -> int:
        return len(self.hosts)

    def resolve(self, hostname: str) -> Optional[Company]:
        """Return the Company operating <hostname>, or None.

        An exact match wins. Otherwise the suffixes following each dot are
        tried from left to right, i.e. from the most specific to the broadest.
        """
        company: Optional[Company] = self.hosts.get(hostname)
        if company is not None:
            return company

        for idx, c in enumerate(hostname):
            if c != ".":
                continue
            suffix: str = hostname[idx+1:]
            if suffix == "":
                break
            company = self.hosts.get(suffix)
            if company is not None:
                return company

        return None

    def is_necessary(self, name: str) -> bool:
        """Return True if the Company called <name> must not be blocked."""
        return name in self.necessary


def parse_entry(raw: Any) -> tuple[Company, list[str]]:
    """Turn one entry of the domain list into a Company and its domains."""
    if not isinstance(raw, dict):
        raise RegistryError(f"Entry is a {type(raw).__name__}, not an object")

    for key in ("country", "owner_name"):
        if not isinstance(raw.get(key), str):
            raise RegistryError(f"Field {key} is missing or not a string")

    parent = raw.get("root_parent")
    if parent is not None and not isinstance(parent, str):
        raise RegistryError("Field root_parent must be a string or null")

    necessary = raw.get("necessary", False)
    if not isinstance(necessary, bool):
        raise RegistryError("Field necessary must be a boolean")

    doms = raw.get("doms")
    if not isinstance(doms, list) or not all(isinstance(d, str) for d in doms):
        raise RegistryError("Field doms must be a list of strings")

    company: Final[Company] = Company(name=raw["owner_name"],
                                      owner=parent,
                                      country=raw["country"],
                                      necessary=necessary)
    return company, doms


def load(entries: Sequence[Any], strict: bool = True) -> tuple[CompanyRegistry, LoadReport]:
    """Build a CompanyRegistry from the decoded domain list.

    If two entries claim the same domain, the later one wins.

    In strict mode, loading stops at the first malformed entry, keeping
    whatever was loaded up to that point. Otherwise, malformed entries are
    skipped and listed in the LoadReport.
    """
    log: Final[logging.Logger] = common.get_logger("registry")
    hosts: dict[str, Company] = {}
    necessary: set[str] = set()
    report: LoadReport = LoadReport()

    for idx, raw in enumerate(entries):
        try:
            company, doms = parse_entry(raw)
        except RegistryError as err:
            report.malformed.append(MalformedEntry(index=idx, reason=str(err)))
            if strict:
                log.error("Loading companies failed at entry #%d: %s",
                          idx,
                          err)
                report.aborted = True
                break
            log.warning("Skip malformed entry #%d: %s", idx, err)
            continue

        if company.necessary:
            necessary.add(company.name)
        for dom in doms:
            hosts[dom] = company
        report.loaded += 1

    report.domains = len(hosts)
    log.debug("Loaded %d companies with %d domains, %d malformed entries",
              report.loaded,
              report.domains,
              len(report.malformed))

    reg: Final[CompanyRegistry] = CompanyRegistry(hosts=MappingProxyType(hosts),
                                                  necessary=frozenset(necessary))
    return reg, report


def load_file(src: Union[str, pathlib.Path],
              strict: bool = True) -> tuple[CompanyRegistry, LoadReport]:
    """Build a CompanyRegistry from a JSON file.

    A missing or unreadable file, or one that is not a JSON array, yields an
    empty registry.
    """
    log: Final[logging.Logger] = common.get_logger("registry")

    try:
        with open(src, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as err:
        log.warning("Cannot read company domain list %s: %s",
                    src,
                    err)
        return CompanyRegistry.empty(), LoadReport(aborted=True)
    except json.JSONDecodeError as err:
        log.error("Company domain list %s is not valid JSON: %s",
                  src,
                  err)
        return CompanyRegistry.empty(), LoadReport(aborted=True)

    if not isinstance(data, list):
        log.error("Company domain list %s does not contain an array, but a %s",
                  src,
                  type(data).__name__)
        return CompanyRegistry.empty(), LoadReport(aborted=True)

    return load(data, strict)


# Local Variables: #
# python-indent: 4 #
# End: #
