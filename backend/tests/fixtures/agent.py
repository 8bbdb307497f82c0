"""
Fake Download Agent

Writes a small Python script that stands in for aria2c. Each run records
its argv as a JSON file, writes payload files into the ``--dir`` target,
optionally sleeps, and exits with the configured code.
"""

import json
import stat
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Sequence

import pytest

posix_only = pytest.mark.skipif(
    sys.platform.startswith("win"), reason="fake agent relies on a shebang script"
)

AGENT_TEMPLATE = '''#!{python}
import json
import os
import sys
import time
import uuid

args = sys.argv[1:]
with open(os.path.join({log_dir!r}, uuid.uuid4().hex + ".json"), "w") as f:
    json.dump(args, f)

out = [a.split("=", 1)[1] for a in args if a.startswith("--dir=")][0]
os.makedirs(out, exist_ok=True)
stem = os.path.basename(args[-1])
for name in {files!r}:
    with open(os.path.join(out, stem + "." + name), "w") as f:
        f.write("payload")

time.sleep({sleep!r})
sys.exit({exit_code!r})
'''


@dataclass
class FakeAgent:
    """Handle on a generated fake agent script."""
    executable: str
    log_dir: Path

    def invocations(self) -> List[List[str]]:
        """Argument lists of every run so far, oldest first."""
        logs = sorted(self.log_dir.glob("*.json"), key=lambda p: p.stat().st_mtime_ns)
        return [json.loads(p.read_text()) for p in logs]


def make_fake_agent(
    root: Path,
    exit_code: int = 0,
    sleep: float = 0.0,
    files: Sequence[str] = ("payload.bin",),
) -> FakeAgent:
    root.mkdir(parents=True, exist_ok=True)
    log_dir = root / "invocations"
    log_dir.mkdir(exist_ok=True)

    script = root / "fake-aria2c"
    script.write_text(
        AGENT_TEMPLATE.format(
            python=sys.executable,
            log_dir=str(log_dir),
            files=list(files),
            sleep=sleep,
            exit_code=exit_code,
        )
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return FakeAgent(executable=str(script), log_dir=log_dir)


def wait_for(predicate: Callable[[], bool], timeout: float = 10.0, interval: float = 0.02) -> bool:
    """Poll ``predicate`` until it returns True or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
