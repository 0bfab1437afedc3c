#!/usr/bin/env python3
"""
Mirror a remote repository into dated, hard-linked snapshots.

    update-repo [options] <source repo path> <dest repo path>

Each run writes <dest>/YYYYMMDD with rsync, hard-linking unchanged files
against <dest>/latest, then repoints <dest>/latest at the new snapshot.

There is no locking: two runs against the same dest at once can race
on the "latest" symlink. Two runs on the same day write into the same
dated directory.
"""
from __future__ import annotations
import argparse
import datetime
import functools
import sys
import traceback
import uuid
from pathlib import Path
from typing import Callable, List, Tuple, TypeVar
from typing_extensions import ParamSpec
from mirrorlib.logging import setup_logging, WithContext, Logger
from mirrorlib.configloader import MirrorConfig, load_config
from mirrorlib.exceptions import UsageError, ConfigException, PolicyRejection, ProbeError, \
      TransferFailure, TransferInterrupted, PointerUpdateFailure
from mirrorlib.paths import SnapshotPaths, normalize
from mirrorlib.probe import latest_exists
from mirrorlib.planner import TransferPlan, plan_transfer
from mirrorlib.executor import execute
from mirrorlib.pointer import update_pointer
from localtypes.projecttypes import TransferReport

P = ParamSpec("P")
R = TypeVar("R")

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2
EXIT_CONFIG = 3
EXIT_PROBE = 4
EXIT_TRANSFER = 5
EXIT_POINTER = 6
EXIT_INTERRUPTED = 130

BANNER = ("update-repo [options] <source repo path> <dest repo path>\n"
          "\tpath is up to, but not including, the updates dir")


def traced_step(trace: List[str], if_failed_then_message: str,
                if_success_then_message: str | None = None):
    """
    Append the step name to `trace`, then the success message or the
    failure message and traceback. Exceptions propagate unchanged.
    """
    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            trace.append(func.__name__)
            try:
                result = func(*args, **kwargs)
            except Exception:
                trace.append(if_failed_then_message)
                trace.append(traceback.format_exc())
                raise
            if if_success_then_message is not None:
                trace.append(if_success_then_message)
            return result
        return wrapper
    return decorator


def run(source: str, dest: str, *, create: bool = False, dry_run: bool = False,
        logger: Logger | None = None, config: MirrorConfig | None = None,
        today: datetime.date | None = None) -> TransferReport:
    """
    Normalize, probe, plan, transfer, and repoint "latest".

    Raises PolicyRejection, ProbeError, TransferFailure or
    PointerUpdateFailure; the "latest" pointer is only touched after
    a successful, non dry-run transfer.
    """
    if config is None:
        config = load_config()
    if logger is None:
        logger = setup_logging(fmt=config.log_format, service=config.service_name)
    run_id = "repomirror-"+str(uuid.uuid4())
    logger = WithContext(logger, {"run_id": run_id}) # type: ignore
    if today is None:
        today = datetime.datetime.now(config.zone()).date()
    trace : List[str] = [f"run_id:{run_id}"]

    @traced_step(trace, if_failed_then_message="normalize failed")
    def normalize_paths() -> SnapshotPaths:
        paths = normalize(source, dest, today)
        logger.info(f"\n\tSource: {paths.source}\n\tDest: {paths.snapshot}")
        return paths

    @traced_step(trace, if_failed_then_message="probe failed")
    def probe_latest(paths: SnapshotPaths) -> bool:
        exists = latest_exists(paths.latest)
        logger.debug(f"{paths.latest} exists: {exists}")
        return exists

    @traced_step(trace, if_failed_then_message="rejected")
    def plan(paths: SnapshotPaths, exists: bool) -> TransferPlan:
        transfer_plan = plan_transfer(exists, create, dry_run, paths)
        if transfer_plan.incremental:
            logger.info(f"incremental sync, hard-linking against {transfer_plan.link_dest}")
        else:
            logger.info("first sync, full transfer")
        return transfer_plan

    @traced_step(trace, if_failed_then_message="rsync failed", if_success_then_message="rsync ok")
    def transfer(transfer_plan: TransferPlan) -> List[str]:
        return execute(transfer_plan, logger, rsync_binary=config.rsync_binary)

    @traced_step(trace, if_failed_then_message="pointer update failed")
    def repoint(paths: SnapshotPaths) -> None:
        update_pointer(paths.latest, paths.snapshot, logger)

    paths = normalize_paths()
    exists = probe_latest(paths)
    transfer_plan = plan(paths, exists)
    output = transfer(transfer_plan)
    pointer_updated = False
    if transfer_plan.dry_run:
        logger.info("dry run, leaving latest alone")
    else:
        repoint(paths)
        pointer_updated = True

    return {
        "success": True,
        "dry_run": transfer_plan.dry_run,
        "incremental": transfer_plan.incremental,
        "cmd": transfer_plan.argv(config.rsync_binary),
        "snapshot_path": paths.snapshot,
        "latest_path": paths.latest,
        "pointer_updated": pointer_updated,
        "output": output,
        "trace": trace,
    }


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="update-repo", usage=BANNER, add_help=False,
                                description="Mirror a repository into dated, hard-linked snapshots.")
    p.add_argument("-v", "--verbose", action="store_true", help="Blather on considerably.")
    p.add_argument("-d", "--debug", action="store_true", help="TMI")
    p.add_argument("-h", "--help", action="store_true", help="Print this help text.")
    p.add_argument("-c", "--create", action="store_true",
                   help="Create a new repo if this doesn't already exist.")
    p.add_argument("-n", "--dry-run", action="store_true",
                   help="Dry run. Show what you would do, but don't actually do it.")
    p.add_argument("--config", type=Path, default=None, help="Optional YAML config file.")
    p.add_argument("paths", nargs="*", metavar="PATH", help="<source> <dest>")
    return p


def source_and_dest(paths: List[str], logger: Logger) -> Tuple[str, str]:
    logger.debug(f"Our arguments are: {paths}")
    if len(paths) < 2:
        raise UsageError("I need two arguments.")
    if len(paths) > 2:
        logger.warning(f"ignoring extra arguments: {paths[2:]}")
    return paths[0], paths[1]


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.help:
        parser.print_help(sys.stdout)
        return EXIT_USAGE

    level = "DEBUG" if args.debug else "INFO" if args.verbose else "WARNING"
    logger = setup_logging(level=level, stream=sys.stdout)
    try:
        source, dest = source_and_dest(args.paths, logger)
    except UsageError as e:
        logger.error(str(e))
        parser.print_help(sys.stdout)
        return EXIT_USAGE

    try:
        config = load_config(args.config)
    except ConfigException as e:
        logger.error(str(e))
        return EXIT_CONFIG
    logger = setup_logging(level=level, fmt=config.log_format, stream=sys.stdout,
                           service=config.service_name)

    try:
        report = run(source, dest, create=args.create, dry_run=args.dry_run,
                     logger=logger, config=config)
    except PolicyRejection as e:
        logger.error(str(e))
        return EXIT_REJECTED
    except ProbeError as e:
        logger.error(str(e))
        return EXIT_PROBE
    except TransferInterrupted as e:
        logger.error(f"{e}; latest left untouched")
        return EXIT_INTERRUPTED
    except TransferFailure as e:
        logger.error(f"{e}; latest left untouched")
        return EXIT_TRANSFER
    except PointerUpdateFailure as e:
        logger.error(str(e))
        return EXIT_POINTER

    if report["dry_run"]:
        for line in report["output"]:
            print(line)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
