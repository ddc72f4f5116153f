#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:02:11 krylon>
#
# /data/code/python/trackerlog/common.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the TrackerLog contact history. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
trackerlog.common

(c) 2026 Benjamin Walkenhorst
"""

import logging
import logging.handlers
import os
import pathlib
import sys
import tomllib
from dataclasses import dataclass, fields
from threading import Lock
from typing import Any, Final, Optional

AppName: Final[str] = "TrackerLog"
AppVersion: Final[str] = "0.1.0"
TimeFmt: Final[str] = "%Y-%m-%d %H:%M:%S"

log_level_tty: int = logging.WARNING


class TrackerError(Exception):
    """Base class for application-specific Exceptions."""


class Path:
    """Holds the paths of folders and files used by the application"""

    __base: str

    def __init__(self, root: str = os.path.expanduser(f"~/.{AppName.lower()}.d")) -> None:  # noqa
        self.__base = root

    def base(self, folder: str = "") -> pathlib.Path:
        """
        Return the base directory for application specific files.

        If path is a non-empty string, set the base directory to its value.
        """
        if folder != "":
            self.__base = str(folder)
        return pathlib.Path(self.__base)

    @property
    def db(self) -> pathlib.Path:  # pylint: disable-msg=C0103
        """Return the path to the database"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.db"))

    @property
    def log(self) -> pathlib.Path:
        """Return the path to the log file"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.log"))

    @property
    def cache(self) -> pathlib.Path:
        """Return the path of the cache directory."""
        return pathlib.Path(os.path.join(self.__base, "cache"))

    @property
    def config(self) -> pathlib.Path:
        """Return the path of the configuration file"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.toml"))

    @property
    def registry(self) -> pathlib.Path:
        """Return the path of the default company domain list."""
        return pathlib.Path(os.path.join(self.__base, "companyDomains.json"))


path: Path = Path(os.path.expanduser(f"~/.{AppName.lower()}.d"))

_lock: Final[Lock] = Lock()  # pylint: disable-msg=C0103
_cache: Final[dict[str, logging.Logger]] = {}  # pylint: disable-msg=C0103


def set_basedir(folder: str) -> None:
    """Set the base dir to the speficied path."""
    path.base(folder)
    init_app()


def init_app() -> None:
    """Initialize the application environment"""
    if not os.path.isdir(path.base()):
        print(f"Create base directory {path.base()}")
        os.makedirs(path.base())
    if not os.path.isdir(path.cache):
        os.mkdir(path.cache)


def get_logger(name: str, terminal: bool = True) -> logging.Logger:
    """Create and return a logger with the given name"""
    with _lock:
        init_app()

        if name in _cache:
            return _cache[name]

        log_format = "%(asctime)s (%(name)-16s / line %(lineno)-4d) " + \
            "- %(levelname)-8s %(message)s"
        max_log_size = 4 * 2**20  # 4 MiB
        max_log_count = 10

        log_obj = logging.getLogger(name)
        log_obj.setLevel(logging.DEBUG)
        log_file_handler = logging.handlers.RotatingFileHandler(path.log,
                                                                'a',
                                                                max_log_size,
                                                                max_log_count)

        log_fmt = logging.Formatter(log_format)
        log_file_handler.setFormatter(log_fmt)
        log_obj.addHandler(log_file_handler)

        if terminal:
            log_console_handler = logging.StreamHandler(sys.stdout)
            log_console_handler.setFormatter(log_fmt)
            log_console_handler.setLevel(log_level_tty)
            log_obj.addHandler(log_console_handler)

        _cache[name] = log_obj
        return log_obj


@dataclass(kw_only=True, slots=True)
class Config:
    """Config holds the tunable settings, as read from the configuration file."""

    registry: str = ""
    strict_registry: bool = True
    queue_size: int = 256
    hostname_cache: bool = True
    cache_ttl: int = 7200

    @property
    def registry_path(self) -> pathlib.Path:
        """Return the path of the domain list, falling back to the default location."""
        if self.registry == "":
            return path.registry
        return pathlib.Path(os.path.expanduser(self.registry))


def load_config(cfg_path: Optional[pathlib.Path] = None) -> Config:
    """Read the configuration file. Missing or broken files yield the defaults."""
    log: Final[logging.Logger] = get_logger("config")
    if cfg_path is None:
        cfg_path = path.config

    cfg: Config = Config()

    if not cfg_path.is_file():
        log.debug("No configuration file found at %s, using defaults.", cfg_path)
        return cfg

    try:
        with open(cfg_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as err:
        log.error("Cannot read configuration file %s: %s",
                  cfg_path,
                  err)
        return cfg

    known: Final[dict[str, type]] = {f.name: type(getattr(cfg, f.name)) for f in fields(Config)}

    for key, val in raw.items():
        if key not in known:
            log.warning("Unknown configuration key %s in %s", key, cfg_path)
            continue
        if not isinstance(val, known[key]):
            log.error("Configuration key %s should be %s, not %s",
                      key,
                      known[key].__name__,
                      type(val).__name__)
            continue
        setattr(cfg, key, val)

    return cfg


# Local Variables: #
# python-indent: 4 #
# End: #
