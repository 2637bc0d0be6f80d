#!/usr/bin/env python3
"""Prepare the local database and run the API dev server with reload.

Usage:
    python scripts/start_dev.py
"""

from __future__ import annotations

import asyncio
import os
import shutil
import signal
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
VENV_BIN = ROOT / ".venv" / ("Scripts" if sys.platform == "win32" else "bin")

API_PORT = os.environ.get("POOL_API_PORT", "8000")


def _find_executable(name: str) -> Path | None:
    """Look inside the venv first, fall back to PATH."""
    for candidate in (VENV_BIN / name, VENV_BIN / f"{name}.exe"):
        if candidate.exists():
            return candidate
    resolved = shutil.which(name)
    return Path(resolved) if resolved else None


async def _stream(name: str, process: asyncio.subprocess.Process) -> None:
    if process.stdout is None:
        return
    async for raw_line in process.stdout:
        print(f"[{name}] {raw_line.decode(errors='ignore').rstrip()}")


async def _init_schema(env: dict[str, str]) -> None:
    print("[launcher] preparing database schema...")
    process = await asyncio.create_subprocess_exec(
        sys.executable,
        str(ROOT / "scripts" / "init_db.py"),
        cwd=str(ROOT),
        env=env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    await _stream("init_db", process)
    if await process.wait() != 0:
        raise SystemExit(process.returncode)


async def main() -> None:
    uvicorn_exe = _find_executable("uvicorn")
    if uvicorn_exe is None:
        raise SystemExit("Missing required executable: uvicorn. Install dependencies and try again.")

    env = os.environ.copy()
    env.setdefault("PYTHONPATH", str(ROOT))
    env.setdefault("WATCHFILES_IGNORE_DIRECTORIES", ".venv")

    await _init_schema(env)

    print(f"[launcher] starting api on http://127.0.0.1:{API_PORT}")
    process = await asyncio.create_subprocess_exec(
        str(uvicorn_exe),
        "pooladmin.main:app",
        "--reload",
        "--port",
        API_PORT,
        "--log-level",
        "info",
        cwd=str(ROOT),
        env=env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    reader = asyncio.create_task(_stream("api", process))

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:  # pragma: no cover
            pass

    waiter = asyncio.create_task(process.wait())
    stopper = asyncio.create_task(stop_event.wait())
    try:
        await asyncio.wait({waiter, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        print("[launcher] shutting down...")
        if process.returncode is None:
            process.terminate()
        await process.wait()
        stopper.cancel()
        reader.cancel()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n[launcher] interrupted by user.")
