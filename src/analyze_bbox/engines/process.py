from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from .base import BACKEND_NOT_INSTALLED, PROCESS_FAILED, PROCESS_TIMEOUT, EngineError

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 4000


def run_tool(
    cmd: Sequence[str], *, timeout_s: float
) -> tuple[subprocess.CompletedProcess[str] | None, EngineError | None]:
    """
    Run an external tool with a hard wall-clock timeout.

    Return (completed process, None) on a zero exit code, else (process or None, error).
    Output is captured as text; diagnostics are kept in `proc.stderr`.
    """

    binary = cmd[0]
    try:
        proc = subprocess.run(
            list(cmd),
            check=False,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout_s,
        )
    except FileNotFoundError:
        logger.error("%s binary not found on PATH", binary)
        return None, EngineError(
            code=BACKEND_NOT_INSTALLED,
            message=f"{binary} binary not found on PATH",
            detail={"expected_command": binary},
        )
    except subprocess.TimeoutExpired:
        logger.error("%s timed out after %ss", binary, timeout_s)
        return None, EngineError(
            code=PROCESS_TIMEOUT,
            message=f"{binary} timed out",
            detail={"timeout_s": timeout_s},
        )

    if proc.returncode != 0:
        stderr_tail = (proc.stderr or "")[-STDERR_TAIL_CHARS:]
        logger.error("%s exited with code %s: %s", binary, proc.returncode, stderr_tail.strip())
        return proc, EngineError(
            code=PROCESS_FAILED,
            message=f"{binary} returned a non-zero exit code",
            detail={"returncode": proc.returncode, "stderr": stderr_tail},
        )

    return proc, None


def require_output(out_file: Path, *, binary: str) -> EngineError | None:
    if out_file.exists() and out_file.stat().st_size > 0:
        return None
    logger.error("%s exited cleanly but wrote no output to %s", binary, out_file)
    return EngineError(
        code=PROCESS_FAILED,
        message=f"{binary} produced no output file",
        detail={"out_file": out_file.name},
    )


def command_template(cmd: Sequence[str], paths: dict[str, Path]) -> list[str]:
    """
    Replace concrete file paths in `cmd` with placeholders (for logs/meta).
    """

    out: list[str] = []
    for part in cmd:
        for placeholder, path in paths.items():
            part = part.replace(str(path), placeholder)
        out.append(part)
    return out
