from __future__ import annotations
import os
from dataclasses import dataclass
from typing import List, Optional
from mirrorlib.exceptions import PolicyRejection
from mirrorlib.paths import SnapshotPaths

# a: archive. v: verbose. z: compress. r: recursive. t: preserve times.
RSYNC_MODE_FLAGS = "-avzrt"
DRY_RUN_FLAG = "-n"


@dataclass(frozen=True)
class TransferPlan:
    source: str
    snapshot_path: str
    link_dest: Optional[str] = None
    dry_run: bool = False

    @property
    def incremental(self) -> bool:
        return self.link_dest is not None

    def argv(self, rsync_binary: str = "rsync") -> List[str]:
        cmd = [rsync_binary, RSYNC_MODE_FLAGS]
        if self.link_dest is not None:
            # rsync resolves a relative --link-dest against the destination dir
            cmd.append(f"--link-dest={os.path.abspath(self.link_dest)}")
        if self.dry_run:
            cmd.append(DRY_RUN_FLAG)
        cmd += [self.source, self.snapshot_path]
        return cmd


def plan_transfer(latest_exists: bool, create: bool, dry_run: bool,
                  paths: SnapshotPaths) -> TransferPlan:
    """
    Decide between a full transfer, an incremental one hard-linked
    against `latest`, or refusing to run at all.

    A dry run is rejected under the same conditions as a real run.

    Raises:
        PolicyRejection: no "latest" pointer and `create` was not given.
    """
    if latest_exists:
        link_dest = paths.latest
    elif create:
        link_dest = None
    else:
        raise PolicyRejection(
            f'"{paths.latest}" doesn\'t exist, and creating a new snapshot '
            "wasn't requested (use -c/--create)"
        )
    return TransferPlan(
        source=paths.source,
        snapshot_path=paths.snapshot,
        link_dest=link_dest,
        dry_run=dry_run,
    )
