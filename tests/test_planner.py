import datetime
import pytest
from mirrorlib.paths import normalize
from mirrorlib.planner import plan_transfer, TransferPlan
from mirrorlib.exceptions import PolicyRejection

PATHS = normalize("https://host/repo", "/data/mirror", datetime.date(2024, 1, 15))


@pytest.mark.parametrize("dry_run", [False, True])
def test_no_latest_without_create_is_rejected(dry_run):
    with pytest.raises(PolicyRejection):
        plan_transfer(False, False, dry_run, PATHS)


def test_first_sync_has_no_link_dest():
    plan = plan_transfer(False, True, False, PATHS)
    assert plan.link_dest is None
    assert not plan.incremental
    assert plan.argv() == ["rsync", "-avzrt", "rsync://host/repo", "/data/mirror/20240115"]


@pytest.mark.parametrize("create", [False, True])
@pytest.mark.parametrize("dry_run", [False, True])
def test_existing_latest_is_link_baseline(create, dry_run):
    plan = plan_transfer(True, create, dry_run, PATHS)
    assert plan.link_dest == "/data/mirror/latest"
    assert "--link-dest=/data/mirror/latest" in plan.argv()


def test_dry_run_adds_simulate_flag():
    plan = plan_transfer(True, False, True, PATHS)
    assert plan.dry_run
    assert plan.argv("/usr/bin/rsync") == [
        "/usr/bin/rsync", "-avzrt", "--link-dest=/data/mirror/latest", "-n",
        "rsync://host/repo", "/data/mirror/20240115",
    ]


def test_plan_is_immutable():
    plan = plan_transfer(True, False, False, PATHS)
    with pytest.raises(Exception):
        plan.dry_run = True


def test_paths_with_spaces_stay_single_tokens():
    plan = TransferPlan(source="rsync://host/a b; rm -rf x", snapshot_path="/m/2024 01")
    assert plan.argv()[-2:] == ["rsync://host/a b; rm -rf x", "/m/2024 01"]
