"""Locate ``.xcresult`` bundles under a project directory."""
from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

BUNDLE_SUFFIX = ".xcresult"

_MINUTE = 60
_HOUR = 3600
_DAY = 86400
_WEEK = 604800


@dataclass(frozen=True)
class XCResultFileInfo:
    path: Path
    modified: float
    size: int

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def modified_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.modified)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def bundle_size(path: Path) -> int:
    """Total size in bytes of every regular file inside a bundle."""
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for filename in filenames:
            try:
                total += (Path(dirpath) / filename).lstat().st_size
            except OSError:
                continue
    return total


def find_xcresult_files(root: str | Path) -> list[XCResultFileInfo]:
    """Find result bundles below ``root``, newest first.

    Hidden files and directories are skipped. A bundle's contents are not
    searched for further bundles.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Not a directory: {root}")

    found: list[XCResultFileInfo] = []
    for dirpath, dirnames, _filenames in os.walk(root):
        keep: list[str] = []
        for dirname in sorted(dirnames):
            if _is_hidden(dirname):
                continue
            if dirname.endswith(BUNDLE_SUFFIX):
                bundle = Path(dirpath) / dirname
                try:
                    modified = bundle.stat().st_mtime
                except OSError:
                    logger.debug("cannot stat %s", bundle)
                    continue
                found.append(XCResultFileInfo(bundle, modified, bundle_size(bundle)))
                continue
            keep.append(dirname)
        dirnames[:] = keep

    found.sort(key=lambda info: info.modified, reverse=True)
    return found


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def format_time_ago(seconds: float) -> str:
    """Coarse, human-readable age, e.g. "3 hours ago"."""
    if seconds < _MINUTE:
        return "just now"
    if seconds < _HOUR:
        return _plural(int(seconds // _MINUTE), "minute")
    if seconds < _DAY:
        return _plural(int(seconds // _HOUR), "hour")
    if seconds < _WEEK:
        return _plural(int(seconds // _DAY), "day")
    return _plural(int(seconds // _WEEK), "week")


def format_file_size(size: int) -> str:
    """Decimal (1 KB = 1000 bytes) file size, e.g. "1.2 MB"."""
    if size <= 0:
        return "Zero KB"
    if size < 1000:
        return f"{size} byte{'' if size == 1 else 's'}"
    if size < 1000 ** 2:
        return f"{round(size / 1000)} KB"
    if size < 1000 ** 3:
        return f"{size / 1000 ** 2:.1f} MB"
    return f"{size / 1000 ** 3:.2f} GB"


def format_timestamp(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{moment:%b} {moment.day}, {moment.year} at {hour}:{moment:%M} {suffix}"


def describe(info: XCResultFileInfo, now: Optional[float] = None) -> dict[str, str]:
    """Display strings for one bundle."""
    now = time.time() if now is None else now
    return {
        "name": info.name,
        "path": str(info.path),
        "modified": format_timestamp(info.modified_datetime),
        "age": format_time_ago(max(0.0, now - info.modified)),
        "size": format_file_size(info.size),
    }
