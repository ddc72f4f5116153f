#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-20 15:07:44 krylon>
#
# /data/code/python/trackerlog/main.py
# created on 20. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import pathlib
import sys
from typing import Final

from trackerlog import common
from trackerlog.common import TimeFmt
from trackerlog.nexus import Nexus


def main() -> None:
    argp: argparse.ArgumentParser = argparse.ArgumentParser(prog=common.AppName.lower())
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="Directory to store application data in")
    argp.add_argument("-r", "--registry",
                      type=pathlib.Path,
                      help="The JSON file listing tracker companies and their domains")
    argp.add_argument("--lenient",
                      action="store_true",
                      help="Skip malformed entries in the domain list instead of giving up")

    cmds = argp.add_subparsers(dest="cmd", required=True)
    rec = cmds.add_parser("record", help="Record an app contacting a host")
    rec.add_argument("app")
    rec.add_argument("ip")
    rec.add_argument("host")
    cmds.add_parser("counts", help="Print the number of tracker companies per app")
    tree = cmds.add_parser("tree", help="Print the tracker companies of an app by owner")
    tree.add_argument("app")
    dump = cmds.add_parser("dump", help="Print the raw history of an app")
    dump.add_argument("app")
    cmds.add_parser("total", help="Print the number of records in the history")

    args = argp.parse_args()
    common.set_basedir(args.basedir)

    cfg: Final[common.Config] = common.load_config()
    if args.registry is not None:
        cfg.registry = str(args.registry)
    if args.lenient:
        cfg.strict_registry = False

    nx = Nexus(cfg=cfg)

    if nx.report is not None and not nx.report.ok:
        for bad in nx.report.malformed:
            print(f"Malformed entry #{bad.index}: {bad.reason}", file=sys.stderr)

    try:
        match args.cmd:
            case "record":
                nx.record_contact(args.app, args.ip, args.host)
                nx.flush()
            case "counts":
                for app, cnt in sorted(nx.app_tracker_counts().items()):
                    print(f"{app}\t{cnt}")
            case "tree":
                for owner in nx.tracker_hierarchy(args.app):
                    print(owner.name)
                    for company in owner.children:
                        print(f"    {company.name}")
            case "dump":
                for r in nx.export_raw(args.app):
                    print(f"{r.record_id}\t{r.timestamp.strftime(TimeFmt)}\t{r.remote_ip}\t"
                          f"{r.hostname}\t{r.company_name or ''}\t{r.company_owner or ''}")
            case "total":
                print(nx.total_record_count())
    finally:
        nx.close()


if __name__ == '__main__':
    main()

# Local Variables: #
# python-indent: 4 #
# End: #
