from __future__ import annotations

import shutil

from duostereo.integrations.command_runner import CommandRunner


class PwLinkIntegration:
    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.pw_link = shutil.which("pw-link")
        self._runner = runner or CommandRunner(env_overrides={"LC_ALL": "C", "LANG": "C"})

    @property
    def available(self) -> bool:
        return bool(self.pw_link)

    def _require(self) -> str:
        if not self.pw_link:
            raise FileNotFoundError("pw-link not found")
        return self.pw_link

    def link(self, source: str, destination: str) -> None:
        if not source or not destination:
            raise RuntimeError("invalid port names for link creation")
        pw_link = self._require()
        result = self._runner.run_sync([pw_link, source, destination])
        if result.ok:
            return

        msg = result.error_text("pw-link failed")
        low = msg.lower()
        if "file exists" in low or "already" in low:
            return
        raise RuntimeError(msg)

    def list_output_ports(self) -> list[str]:
        pw_link = self._require()
        result = self._runner.run_sync([pw_link, "--output"])
        if not result.ok:
            raise RuntimeError(result.error_text("pw-link --output failed"))

        ports: list[str] = []
        for line in (result.stdout or "").splitlines():
            line = line.strip()
            if ":" in line:
                ports.append(line)
        return ports
