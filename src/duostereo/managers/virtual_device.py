from __future__ import annotations

import logging
import time
from typing import Callable

from duostereo.constants import (
    DEFAULT_SETTLE_DELAY_S,
    DEFAULT_SETTLE_TIMEOUT_S,
    DUPLEX_MEDIA_CLASS,
    NULL_SINK_MODULE,
    PORT_POLL_INTERVAL_S,
)
from duostereo.domain.models import LoadedModule, VirtualDeviceSpec
from duostereo.errors import backend_error, timeout_error
from duostereo.integrations.pactl import PactlIntegration
from duostereo.integrations.pw_link import PwLinkIntegration


logger = logging.getLogger(__name__)

NBSP = "\u00a0"


class VirtualDeviceManager:
    """Idempotent find-and-remove plus creation of the duplex null sink."""

    def __init__(
        self,
        *,
        pactl: PactlIntegration,
        pw_link: PwLinkIntegration,
        settle_delay: float = DEFAULT_SETTLE_DELAY_S,
        settle_timeout: float = DEFAULT_SETTLE_TIMEOUT_S,
        poll_interval: float = PORT_POLL_INTERVAL_S,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._pactl = pactl
        self._pw_link = pw_link
        self._settle_delay = settle_delay
        self._settle_timeout = settle_timeout
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._clock = clock

    @staticmethod
    def module_args(spec: VirtualDeviceSpec) -> list[str]:
        # pactl splits module arguments on regular spaces.
        description = spec.description.replace(" ", NBSP)
        return [
            f"media.class={DUPLEX_MEDIA_CLASS}",
            f"sink_name={spec.name}",
            f"sink_properties=device.description={description}",
            f"channel_map=[{','.join(spec.channel_map)}]",
        ]

    def find_stale(self, name: str) -> list[LoadedModule]:
        try:
            modules = self._pactl.list_modules()
        except (RuntimeError, OSError) as exc:
            raise backend_error(
                f"failed to list modules while looking for {name}",
                {"operation": "list-modules", "device": name, "error": str(exc)},
            ) from exc

        token = f"sink_name={name}"
        return [mod for mod in modules if token in mod.arg_tokens()]

    def remove_stale(self, name: str, *, progress: Callable[[str], None] | None = None) -> list[int]:
        removed: list[int] = []
        for mod in self.find_stale(name):
            if progress is not None:
                progress(f"Removing module {mod.id}")
            try:
                self._pactl.unload_module(mod.id)
            except (RuntimeError, OSError) as exc:
                raise backend_error(
                    f"failed to unload module {mod.id} for {name}",
                    {"operation": "unload-module", "device": name, "module_id": mod.id, "error": str(exc)},
                ) from exc
            logger.info("module.unloaded id=%s device=%s", mod.id, name)
            removed.append(mod.id)
        return removed

    def create(self, spec: VirtualDeviceSpec) -> int:
        try:
            module_id = self._pactl.load_module(NULL_SINK_MODULE, self.module_args(spec))
        except (RuntimeError, OSError) as exc:
            raise backend_error(
                f"failed to create virtual device {spec.name}",
                {"operation": "load-module", "device": spec.name, "error": str(exc)},
            ) from exc
        logger.info("module.loaded id=%s device=%s", module_id, spec.name)
        self.wait_for_ports(spec)
        return module_id

    def wait_for_ports(self, spec: VirtualDeviceSpec) -> None:
        if self._settle_delay > 0:
            self._sleep(self._settle_delay)

        expected = set(spec.capture_ports())
        deadline = self._clock() + self._settle_timeout
        while True:
            try:
                ports = set(self._pw_link.list_output_ports())
            except (RuntimeError, OSError) as exc:
                raise backend_error(
                    f"failed to list ports of {spec.name}",
                    {"operation": "list-ports", "device": spec.name, "error": str(exc)},
                ) from exc

            missing = sorted(expected - ports)
            if not missing:
                logger.debug("module.ports_ready device=%s", spec.name)
                return
            if self._clock() >= deadline:
                raise timeout_error(
                    f"ports of {spec.name} did not appear within {self._settle_timeout:g}s",
                    {"device": spec.name, "missing_ports": missing},
                )
            self._sleep(self._poll_interval)
