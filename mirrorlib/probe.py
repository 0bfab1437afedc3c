from __future__ import annotations
import os
from mirrorlib.exceptions import ProbeError


def latest_exists(latest_path: str) -> bool:
    """
    True if anything sits at `latest_path`, including a dangling symlink.
    lstat is used so a broken link still counts as a previous run.

    Raises:
        ProbeError: for any filesystem error other than "not found".
    """
    try:
        os.lstat(latest_path)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise ProbeError(f"could not check for {latest_path}: {e.strerror}") from e
    return True
