from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str
    args: list[str]

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def error_text(self, fallback: str) -> str:
        return (self.stderr or self.stdout or "").strip() or fallback


class CommandRunner:
    def __init__(self, *, env_overrides: dict[str, str] | None = None) -> None:
        self._env_overrides = dict(env_overrides or {})

    def _env(self) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self._env_overrides)
        return env

    def run_sync(self, command: list[str]) -> CommandResult:
        proc = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            env=self._env(),
        )
        return CommandResult(
            returncode=int(proc.returncode or 0),
            stdout=str(proc.stdout or ""),
            stderr=str(proc.stderr or ""),
            args=list(command),
        )
