from __future__ import annotations

import os
import subprocess
from datetime import datetime, timezone
from functools import lru_cache
from importlib import metadata

DISTRIBUTION_NAME = "pool-admin"
UNRELEASED_VERSION = "0.0.0-dev"


def _package_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return UNRELEASED_VERSION


def _git_sha() -> str:
    sha = os.getenv("POOL_GIT_SHA") or os.getenv("GIT_SHA")
    if sha:
        return sha
    try:
        output = subprocess.check_output(["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):
        return "unknown"
    return output.decode("utf-8").strip()


@lru_cache
def get_version_info() -> dict[str, str]:
    """Build metadata served by /system/version; resolved once per process."""
    return {
        "service": DISTRIBUTION_NAME,
        "version": _package_version(),
        "gitSha": _git_sha(),
        "buildTime": os.getenv("BUILD_TIME", datetime.now(timezone.utc).isoformat()),
        "env": os.getenv("APP_ENV", "development"),
    }
