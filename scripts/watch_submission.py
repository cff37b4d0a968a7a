#!/usr/bin/env python3
"""
Watch a submission's carrier automation status until every task finishes.

Start the API first:
  uvicorn src.api.main:app --host 127.0.0.1 --port 8000

Usage (from repo root):
  python scripts/watch_submission.py <submission_id> [--base-url http://127.0.0.1:8000]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx

from src.submissions.status_poller import StatusPoller
from src.submissions.status_tracker import format_elapsed
from src.utils.config_loader import load_dispatch_config


def _render(poller: StatusPoller) -> None:
    now = datetime.now(timezone.utc)
    progress = poller.progress(now)
    print(f"\n[{now.strftime('%H:%M:%S')}] poll #{poller.polls}")
    if not poller.tasks:
        print("  no automation tasks yet")
        return
    for key, task in poller.display_tasks(now).items():
        marker = " (simulated)" if task.simulated else ""
        elapsed = format_elapsed(task.submitted_at, task.completed_at, now)
        line = f"  {key:<10} {task.status.value:<10}{marker} {progress[key]:>3}%  {elapsed}"
        if task.result and (task.result.quote_url or task.result.sheet_url):
            line += f"  {task.result.quote_url or task.result.sheet_url}"
        if task.error:
            line += f"  error: {task.error}"
        print(line)


async def main() -> int:
    parser = argparse.ArgumentParser(description="Poll a submission's RPA task status")
    parser.add_argument("submission_id")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    status_cfg = load_dispatch_config().status
    url = f"{args.base_url.rstrip('/')}/api/v1/submissions/{args.submission_id}"

    async with httpx.AsyncClient(timeout=10.0) as client:

        async def fetch():
            response = await client.get(url)
            response.raise_for_status()
            return response.json().get("rpa_tasks") or {}

        poller = StatusPoller(
            fetch,
            poll_interval_seconds=status_cfg.poll_interval_seconds,
            accept_dwell_seconds=status_cfg.accept_dwell_seconds,
            run_dwell_seconds=status_cfg.run_dwell_seconds,
            expected_run_seconds=status_cfg.expected_run_seconds,
        )
        tasks = await poller.run(on_update=_render)

    if not tasks:
        print("   → Nothing to watch. Is the API running? uvicorn src.api.main:app --host 127.0.0.1 --port 8000")
        return 1

    done = sum(1 for task in tasks.values() if task.is_terminal)
    print(f"\nFinished: {done}/{len(tasks)} tasks in a final state")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
