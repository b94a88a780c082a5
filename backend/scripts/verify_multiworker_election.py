"""Multi-worker election sanity check.

This is an operational check (not a unit test). It starts uvicorn with several
workers sharing one file-backed settings store, waits briefly, and reports the
instance that ended up owning the lease. Every worker is a separate process
with its own identity, so exactly one owner must be recorded.
"""

from __future__ import annotations

import argparse
import json
import os
import signal
import subprocess
import sys
import tempfile
import time
from pathlib import Path

OWNER_KEY = "metabot_instance_uuid"
LAST_CHECKIN_KEY = "metabot_instance_last_checkin"


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Start uvicorn with multiple workers and report the elected instance."
    )
    parser.add_argument("--workers", type=int, default=3)
    parser.add_argument("--port", type=int, default=8003)
    parser.add_argument("--seconds", type=float, default=4.0)
    args = parser.parse_args()

    data_dir = Path(tempfile.mkdtemp(prefix="botlease-"))
    env = dict(os.environ)
    env["LEASE_BACKEND"] = "file"
    env["LEASE_DATA_DIR"] = str(data_dir)

    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "botlease.main:create_app",
        "--factory",
        "--workers",
        str(max(args.workers, 1)),
        "--port",
        str(args.port),
        "--log-level",
        "info",
    ]
    print("running:", " ".join(cmd))
    print("settings dir:", data_dir)
    proc = subprocess.Popen(cmd, env=env)
    try:
        time.sleep(max(args.seconds, 0.1))
    finally:
        try:
            proc.send_signal(signal.SIGINT)
        except OSError:
            pass
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait(timeout=5)

    settings_file = data_dir / "settings.json"
    if not settings_file.exists():
        print("no settings were written; did the workers start?")
        return 1
    payload = json.loads(settings_file.read_text(encoding="utf-8"))
    owner = payload.get(OWNER_KEY)
    print("owner:", owner)
    print("last checkin:", payload.get(LAST_CHECKIN_KEY))
    return 0 if owner else 1


if __name__ == "__main__":
    raise SystemExit(main())
