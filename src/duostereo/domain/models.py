from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from duostereo.constants import CHANNEL_MAP


@dataclass(frozen=True)
class PhysicalEndpoint:
    name: str
    role: str

    @property
    def playback_fl(self) -> str:
        return f"{self.name}:playback_FL"

    @property
    def playback_fr(self) -> str:
        return f"{self.name}:playback_FR"


@dataclass(frozen=True)
class VirtualDeviceSpec:
    name: str
    description: str
    channel_map: tuple[str, ...] = CHANNEL_MAP

    def capture_port(self, index: int) -> str:
        if index < 1 or index > len(self.channel_map):
            raise ValueError(f"capture port index out of range: {index}")
        return f"{self.name}:capture_{index}"

    def capture_ports(self) -> list[str]:
        return [self.capture_port(i) for i in range(1, len(self.channel_map) + 1)]


@dataclass(frozen=True)
class LoadedModule:
    id: int
    name: str
    args: str

    def arg_tokens(self) -> list[str]:
        return self.args.split()


@dataclass(frozen=True)
class LinkRequest:
    source: str
    destination: str

    def __str__(self) -> str:
        return f"{self.source} -> {self.destination}"


@dataclass(frozen=True)
class LinkResult:
    request: LinkRequest
    ok: bool
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.request.source,
            "destination": self.request.destination,
            "ok": self.ok,
            "error": self.error,
        }


@dataclass
class RunReport:
    state: str
    module_id: int | None = None
    removed_modules: list[int] = field(default_factory=list)
    links: list[LinkResult] = field(default_factory=list)

    @property
    def failed_links(self) -> list[LinkResult]:
        return [link for link in self.links if not link.ok]

    @property
    def partial(self) -> bool:
        return bool(self.failed_links)

    def as_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "module_id": self.module_id,
            "removed_modules": list(self.removed_modules),
            "links": [link.as_dict() for link in self.links],
            "partial": self.partial,
        }
