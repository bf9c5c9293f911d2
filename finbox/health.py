"""
Health report for GET /api/health.

    {status, timestamp, uptime, environment, version,
     checks: {api, memory: {healthy, used, total, percentage}, disk: {...}}}

Process memory is RSS against physical memory; disk is free space on the
data directory's filesystem.
"""

from __future__ import annotations

import os
import resource
import shutil
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

MEMORY_LIMIT_PCT = 90.0
DISK_MIN_FREE_PCT = 5.0


def _mb(n: float) -> str:
    return f"{round(n / 1024 / 1024)}MB"


def _rss_bytes() -> int:
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports KiB, macOS bytes
    return rss if sys.platform == "darwin" else rss * 1024


def _total_memory_bytes() -> int:
    return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")


def memory_status() -> dict:
    used = _rss_bytes()
    total = _total_memory_bytes()
    percentage = (used / total) * 100 if total else 0.0
    return {
        "healthy": percentage < MEMORY_LIMIT_PCT,
        "used": _mb(used),
        "total": _mb(total),
        "percentage": f"{percentage:.2f}%",
    }


def disk_status(path: str | Path = ".") -> dict:
    target = Path(path)
    while not target.exists() and target != target.parent:
        target = target.parent
    usage = shutil.disk_usage(target)
    free_pct = (usage.free / usage.total) * 100 if usage.total else 0.0
    return {
        "healthy": free_pct >= DISK_MIN_FREE_PCT,
        "free": _mb(usage.free),
        "total": _mb(usage.total),
    }


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_health_report(
    started_at: float,
    environment: str = "development",
    version: str = "1.0.0",
    api_ok: bool = True,
    data_dir: str | Path = ".",
) -> dict:
    """Assemble the health payload. Raises if a check itself fails."""
    return {
        "status": "healthy",
        "timestamp": utc_now(),
        "uptime": round(time.monotonic() - started_at, 3),
        "environment": environment,
        "version": version,
        "checks": {
            "api": api_ok,
            "memory": memory_status(),
            "disk": disk_status(data_dir),
        },
    }


def unhealthy_report(error: Exception) -> dict:
    return {"status": "unhealthy", "timestamp": utc_now(), "error": str(error)}
