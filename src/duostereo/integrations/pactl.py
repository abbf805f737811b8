from __future__ import annotations

import shutil

from duostereo.domain.models import LoadedModule
from duostereo.integrations.command_runner import CommandRunner


class PactlIntegration:
    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.pactl = shutil.which("pactl")
        self._runner = runner or CommandRunner(env_overrides={"LC_ALL": "C", "LANG": "C"})

    @property
    def available(self) -> bool:
        return bool(self.pactl)

    def _require(self) -> str:
        if not self.pactl:
            raise FileNotFoundError("pactl not found")
        return self.pactl

    def load_module(self, name: str, args: list[str]) -> int:
        pactl = self._require()
        result = self._runner.run_sync([pactl, "load-module", name, *args])
        if not result.ok:
            raise RuntimeError(result.error_text("pactl load-module failed"))
        out = (result.stdout or "").strip()
        try:
            return int(out)
        except ValueError:
            raise RuntimeError(f"pactl load-module returned unexpected output: {out!r}") from None

    def unload_module(self, module_id: int) -> None:
        pactl = self._require()
        result = self._runner.run_sync([pactl, "unload-module", str(int(module_id))])
        if not result.ok:
            raise RuntimeError(result.error_text("pactl unload-module failed"))

    def list_modules(self) -> list[LoadedModule]:
        pactl = self._require()
        result = self._runner.run_sync([pactl, "list", "short", "modules"])
        if not result.ok:
            raise RuntimeError(result.error_text("pactl list modules failed"))

        modules: list[LoadedModule] = []
        for line in (result.stdout or "").splitlines():
            line = line.strip()
            if not line:
                continue
            parts = line.split("\t")
            if len(parts) < 2:
                continue
            module_id = parts[0].strip()
            if not module_id.isdigit():
                continue
            args = parts[2].strip() if len(parts) >= 3 else ""
            modules.append(LoadedModule(id=int(module_id), name=parts[1].strip(), args=args))
        return modules

    def list_objects_detailed(self) -> list[dict[str, object]]:
        """Parse ``pactl list`` into one entry per object with its ``key = "value"`` properties."""
        pactl = self._require()
        result = self._runner.run_sync([pactl, "list"])
        if not result.ok:
            raise RuntimeError(result.error_text("pactl list failed"))

        objects: list[dict[str, object]] = []
        current: dict[str, object] | None = None
        for raw in (result.stdout or "").splitlines():
            stripped = raw.strip()
            if not stripped:
                continue
            # Object headers are the only unindented lines, e.g. "Sink #57".
            if not raw[0].isspace() and "#" in stripped:
                if current is not None:
                    objects.append(current)
                kind, _, oid = stripped.partition("#")
                current = {"kind": kind.strip(), "id": oid.strip(), "properties": {}}
                continue
            if current is None or " = " not in stripped:
                continue
            key, value = stripped.split(" = ", 1)
            value = value.strip()
            if value.startswith('"') and value.endswith('"') and len(value) >= 2:
                value = value[1:-1]
            props = current.get("properties")
            if isinstance(props, dict):
                props[key.strip()] = value

        if current is not None:
            objects.append(current)
        return objects
