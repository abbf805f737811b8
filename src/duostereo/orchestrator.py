from __future__ import annotations

import logging
import time
from typing import Callable

from duostereo.config import StereoPairConfig
from duostereo.constants import PACTL_PACKAGE, PW_LINK_PACKAGE
from duostereo.core.run_state import RunState, RunStateTracker
from duostereo.domain.models import PhysicalEndpoint, RunReport, VirtualDeviceSpec
from duostereo.errors import StereoPairError, dependency_error, device_error
from duostereo.integrations.pactl import PactlIntegration
from duostereo.integrations.pw_link import PwLinkIntegration
from duostereo.managers.device_registry import DeviceRegistry
from duostereo.managers.link_builder import LinkGraphBuilder
from duostereo.managers.virtual_device import VirtualDeviceManager


logger = logging.getLogger(__name__)


class StereoPairOrchestrator:
    """Drives one run: preflight checks, stale module cleanup, creation, then wiring.

    Every step is attempted once. Preflight failures abort before the audio
    server is touched; link failures are collected in the report instead.
    """

    def __init__(
        self,
        config: StereoPairConfig,
        *,
        pactl: PactlIntegration | None = None,
        pw_link: PwLinkIntegration | None = None,
        progress: Callable[[str], None] = print,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self._pactl = pactl or PactlIntegration()
        self._pw_link = pw_link or PwLinkIntegration()
        self._progress = progress
        self.tracker = RunStateTracker()

        self.virtual = VirtualDeviceSpec(name=config.virtual_name, description=config.description)
        self.left = PhysicalEndpoint(name=config.left, role="left")
        self.right = PhysicalEndpoint(name=config.right, role="right")

        self._registry = DeviceRegistry(pactl=self._pactl)
        self._devices = VirtualDeviceManager(
            pactl=self._pactl,
            pw_link=self._pw_link,
            settle_delay=config.settle_delay,
            settle_timeout=config.settle_timeout,
            sleep=sleep,
            clock=clock,
        )
        self._links = LinkGraphBuilder(pw_link=self._pw_link)

    @property
    def state(self) -> RunState:
        return self.tracker.state

    def _require_tool(self, command: str, package: str, available: bool) -> None:
        if not available:
            self._progress(f"Looking for {command} command... not found (please install {package} package)")
            raise dependency_error(f"{command} not found", {"tool": command, "package": package})
        self._progress(f"Looking for {command} command... found")

    def _require_speaker(self, endpoint: PhysicalEndpoint) -> None:
        if not self._registry.endpoint_present(endpoint.name):
            self._progress(f"Looking for {endpoint.name} speaker... not found")
            raise device_error(
                f"{endpoint.role} speaker {endpoint.name!r} is not connected",
                {"speaker": endpoint.name, "role": endpoint.role},
            )
        self._progress(f"Looking for {endpoint.name} speaker... found")

    def _preflight(self) -> None:
        self._require_tool("pw-link", PW_LINK_PACKAGE, self._pw_link.available)
        self._require_tool("pactl", PACTL_PACKAGE, self._pactl.available)

        self.tracker.transition(RunState.CHECKING_DEVICES)
        self._require_speaker(self.left)
        self._require_speaker(self.right)

    def run(self) -> RunReport:
        report = RunReport(state=self.state.value)
        try:
            self._preflight()

            self.tracker.transition(RunState.REMOVING_STALE_MODULE)
            report.removed_modules = self._devices.remove_stale(self.virtual.name, progress=self._progress)

            self.tracker.transition(RunState.CREATING_MODULE)
            self._progress(f"Creating module {self.virtual.name}")
            report.module_id = self._devices.create(self.virtual)

            self.tracker.transition(RunState.LINKING)
            self._progress(f"Wiring {self.virtual.name} to {self.left.name} and {self.right.name}")
            report.links = self._links.build(LinkGraphBuilder.plan(self.virtual, self.left, self.right))
        except StereoPairError as exc:
            logger.warning(
                "run.aborted state=%s code=%s error=%s",
                self.state.value,
                exc.code,
                (exc.details or {}).get("error", exc.message),
            )
            self.tracker.abort()
            raise

        self.tracker.transition(RunState.DONE)
        report.state = self.state.value
        logger.info("run.done module_id=%s failed_links=%s", report.module_id, len(report.failed_links))
        return report

    def check(self) -> RunReport:
        try:
            self._preflight()
        except StereoPairError:
            self.tracker.abort()
            raise
        self.tracker.transition(RunState.DONE)
        return RunReport(state=self.state.value)

    def teardown(self) -> RunReport:
        report = RunReport(state=self.state.value)
        try:
            self._require_tool("pactl", PACTL_PACKAGE, self._pactl.available)
            self.tracker.transition(RunState.REMOVING_STALE_MODULE)
            report.removed_modules = self._devices.remove_stale(self.virtual.name, progress=self._progress)
        except StereoPairError:
            self.tracker.abort()
            raise
        self.tracker.transition(RunState.DONE)
        report.state = self.state.value
        return report
