from __future__ import annotations
import subprocess
from logging import Logger
from typing import List
from mirrorlib.exceptions import TransferFailure, TransferInterrupted
from mirrorlib.planner import TransferPlan

TERMINATE_GRACE_SECONDS = 10


def _stop(p: subprocess.Popen, logger: Logger) -> None:
    p.terminate()
    try:
        p.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning("rsync ignored SIGTERM, killing it")
        p.kill()
        p.wait()


def execute(plan: TransferPlan, logger: Logger, rsync_binary: str = "rsync") -> List[str]:
    """
    Run rsync for `plan` and stream its output into the log.
    Returns the lines rsync printed.

    Raises:
        TransferFailure: rsync is missing or exited non-zero.
        TransferInterrupted: the run was cancelled (Ctrl-C).
    """
    cmd = plan.argv(rsync_binary)
    logger.info("Executing rsync as:\n\t" + " ".join(cmd))
    output: List[str] = []
    try:
        with subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,  # rsync reports errors on stderr
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            ) as p:
                try:
                    if p.stdout is not None:
                        for line in p.stdout:
                            line = line.rstrip()
                            output.append(line)
                            logger.info("rsync: " + line)
                    rc = p.wait()
                except KeyboardInterrupt as e:
                    _stop(p, logger)
                    raise TransferInterrupted("rsync interrupted", returncode=p.returncode, cmd=cmd) from e
    except OSError as e:
        raise TransferFailure(f"could not start {rsync_binary}: {e.strerror}", cmd=cmd) from e
    if rc != 0:
        raise TransferFailure(f"rsync exited with code {rc}", returncode=rc, cmd=cmd)
    logger.info(f"executed {cmd}")
    return output
