import io
import stat
import subprocess
from pathlib import Path
import pytest
from mirrorlib.configloader import MirrorConfig
from mirrorlib.logging import setup_logging

# Stand-in for rsync: records its argv (one per line) next to itself,
# creates the last argument as a directory unless -n was given, and
# exits with FAKE_RC.
FAKE_RSYNC = """#!/bin/sh
log="$(dirname "$0")/rsync_calls.log"
: > "$log"
dry=0
for a in "$@"; do
  printf '%s\\n' "$a" >> "$log"
  [ "$a" = "-n" ] && dry=1
done
for last in "$@"; do :; done
echo "sending incremental file list"
if [ {rc} -eq 0 ] && [ $dry -eq 0 ]; then
  mkdir -p "$last"
  touch "$last/repomd.xml"
fi
exit {rc}
"""


@pytest.fixture
def make_rsync(tmp_path: Path):
    def _make(rc: int = 0) -> Path:
        bindir = tmp_path / "bin"
        bindir.mkdir(exist_ok=True)
        script = bindir / "rsync"
        script.write_text(FAKE_RSYNC.format(rc=rc))
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script
    return _make


@pytest.fixture
def rsync_calls():
    def _calls(script: Path) -> list:
        log = script.parent / "rsync_calls.log"
        if not log.exists():
            return []
        return log.read_text().splitlines()
    return _calls


@pytest.fixture
def dest(tmp_path: Path) -> Path:
    d = tmp_path / "mirror"
    d.mkdir()
    return d


@pytest.fixture
def logger():
    return setup_logging(level="DEBUG", appName="repomirror-test", fmt="plain", stream=io.StringIO())


@pytest.fixture
def config_for():
    def _config(script: Path) -> MirrorConfig:
        return MirrorConfig(rsync_binary=str(script), log_format="plain")
    return _config


class _InterruptingStdout:
    def __iter__(self):
        raise KeyboardInterrupt

    def close(self):
        pass


class _InterruptedPopen:
    """Popen whose output stream raises KeyboardInterrupt, like Ctrl-C mid-transfer."""
    instances = []

    def __init__(self, cmd, **kwargs):
        self.cmd = cmd
        self.stdout = _InterruptingStdout()
        self.returncode = None
        self.terminated = False
        _InterruptedPopen.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def terminate(self):
        self.terminated = True

    def kill(self):
        pass

    def wait(self, timeout=None):
        self.returncode = -15
        return self.returncode


@pytest.fixture
def interrupting_popen(monkeypatch):
    _InterruptedPopen.instances = []
    monkeypatch.setattr(subprocess, "Popen", _InterruptedPopen)
    return _InterruptedPopen
