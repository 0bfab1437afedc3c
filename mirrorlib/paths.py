from __future__ import annotations
import re
import datetime
from dataclasses import dataclass

TRANSFER_SCHEME = "rsync://"
LATEST_NAME = "latest"
DATESTAMP_FORMAT = "%Y%m%d"

_WEB_SCHEME = re.compile(r"^(https?://)?")


@dataclass(frozen=True)
class SnapshotPaths:
    source: str
    snapshot: str
    latest: str


def datestamp(today: datetime.date) -> str:
    return today.strftime(DATESTAMP_FORMAT)


def normalize_source(source: str) -> str:
    """Swap an http(s):// prefix (or nothing) for rsync://."""
    return _WEB_SCHEME.sub(TRANSFER_SCHEME, source, count=1)


def under_root(root: str, segment: str) -> str:
    # exactly one separator between root and segment
    return root.rstrip("/") + "/" + segment


def normalize(source: str, dest: str, today: datetime.date) -> SnapshotPaths:
    return SnapshotPaths(
        source=normalize_source(source),
        snapshot=under_root(dest, datestamp(today)),
        latest=under_root(dest, LATEST_NAME),
    )
