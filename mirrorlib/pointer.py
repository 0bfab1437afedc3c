from __future__ import annotations
import os
import shutil
import stat
from logging import Logger
from mirrorlib.exceptions import PointerUpdateFailure


def update_pointer(latest_path: str, snapshot_path: str, logger: Logger) -> None:
    """
    Replace whatever is at `latest_path` with a symlink to `snapshot_path`.

    Only call this after a real (not dry-run) transfer finished cleanly.
    Removal and creation are two steps: if we die in between there is no
    pointer, and the next run needs --create.

    Raises:
        PointerUpdateFailure: if the old entry can't be removed or the new
        link can't be created. The snapshot itself is still complete.
    """
    try:
        st = os.lstat(latest_path)
    except FileNotFoundError:
        st = None
    except OSError as e:
        raise PointerUpdateFailure(f"could not stat {latest_path}: {e.strerror}") from e

    if st is not None:
        try:
            if stat.S_ISDIR(st.st_mode):
                logger.warning(f"{latest_path} is a real directory, not a symlink; removing it")
                shutil.rmtree(latest_path)
            else:
                logger.debug(f"removing old pointer {latest_path}")
                os.unlink(latest_path)
        except OSError as e:
            raise PointerUpdateFailure(f"could not remove {latest_path}: {e}") from e

    # relative to the link's own directory
    target = os.path.relpath(snapshot_path, os.path.dirname(latest_path) or ".")
    try:
        os.symlink(target, latest_path)
    except OSError as e:
        raise PointerUpdateFailure(
            f"could not link {latest_path} -> {snapshot_path}: {e}; snapshot is intact"
        ) from e
    logger.info(f"pointer updated: {latest_path} -> {target}")
