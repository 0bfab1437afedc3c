from __future__ import annotations
from typing import TypedDict, List


class TransferReport(TypedDict):
    success: bool
    dry_run: bool
    incremental: bool
    cmd: List[str]
    snapshot_path: str
    latest_path: str
    pointer_updated: bool
    output: List[str]
    trace: List[str]
