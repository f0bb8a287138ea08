"""
Process boundary for the external media tools (ffprobe / ffmpeg).

Stages only ever call `MediaToolRunner.run`; tests swap in a runner that
fabricates the files the real tools would write.
"""
import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    args: list
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class MediaToolRunner:
    """Runs a media tool to completion and captures its output."""

    def run(self, args: Sequence[str], *, timeout: Optional[int] = None) -> ToolResult:
        cmd = [str(a) for a in args]
        logger.debug("exec %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return ToolResult(cmd, returncode=-1, stderr=f"{cmd[0]} timed out after {timeout}s")
        except FileNotFoundError:
            return ToolResult(cmd, returncode=127, stderr=f"{cmd[0]} not found")

        return ToolResult(
            cmd,
            returncode=proc.returncode,
            stdout=proc.stdout.decode("utf-8", errors="ignore"),
            stderr=proc.stderr.decode("utf-8", errors="ignore"),
        )
