from __future__ import annotations

import unittest
from typing import Any, cast

from duostereo.config import StereoPairConfig
from duostereo.core.run_state import RunState
from duostereo.domain.models import LoadedModule
from duostereo.errors import StereoPairError
from duostereo.orchestrator import StereoPairOrchestrator


class _FakeAudioServer:
    """In-memory module and link table standing in for both pactl and pw-link."""

    def __init__(self, devices: set[str], *, failing_links: set[tuple[str, str]] | None = None) -> None:
        self.devices = set(devices)
        self.failing_links = failing_links or set()
        self.modules: dict[int, LoadedModule] = {}
        self.links: set[tuple[str, str]] = set()
        self.link_calls: list[tuple[str, str]] = []
        self.mutations: list[str] = []
        self.available = True
        self._next_id = 536

    def list_objects_detailed(self) -> list[dict[str, object]]:
        return [
            {"kind": "Card", "id": str(i), "properties": {"device.alias": name}}
            for i, name in enumerate(sorted(self.devices))
        ]

    def list_modules(self) -> list[LoadedModule]:
        return list(self.modules.values())

    def load_module(self, name: str, args: list[str]) -> int:
        module_id = self._next_id
        self._next_id += 1
        self.modules[module_id] = LoadedModule(id=module_id, name=name, args=" ".join(args))
        self.mutations.append(f"load {module_id}")
        return module_id

    def unload_module(self, module_id: int) -> None:
        module = self.modules.pop(module_id)
        sink = self._sink_name(module)
        self.links = {link for link in self.links if not link[0].startswith(f"{sink}:")}
        self.mutations.append(f"unload {module_id}")

    def list_output_ports(self) -> list[str]:
        ports: list[str] = []
        for module in self.modules.values():
            sink = self._sink_name(module)
            ports.extend([f"{sink}:capture_1", f"{sink}:capture_2"])
        return ports

    def link(self, source: str, destination: str) -> None:
        self.link_calls.append((source, destination))
        if (source, destination) in self.failing_links:
            raise RuntimeError("failed to link ports: No such file or directory")
        self.links.add((source, destination))

    def sink_names(self) -> list[str]:
        return [self._sink_name(m) for m in self.modules.values()]

    @staticmethod
    def _sink_name(module: LoadedModule) -> str:
        for token in module.arg_tokens():
            if token.startswith("sink_name="):
                return token.split("=", 1)[1]
        return ""


class _MissingTool:
    available = False


CONFIG = StereoPairConfig(virtual_name="Stereo", description="Stereo", left="SpkA", right="SpkB")

EXPECTED_LINKS = {
    ("Stereo:capture_1", "SpkA:playback_FL"),
    ("Stereo:capture_1", "SpkA:playback_FR"),
    ("Stereo:capture_2", "SpkB:playback_FL"),
    ("Stereo:capture_2", "SpkB:playback_FR"),
}


def _orchestrator(server: _FakeAudioServer, progress: list[str] | None = None, **kwargs: Any) -> StereoPairOrchestrator:
    sleeps: list[float] = kwargs.pop("sleeps", [])
    lines = progress if progress is not None else []
    return StereoPairOrchestrator(
        CONFIG,
        pactl=cast(Any, server),
        pw_link=cast(Any, server),
        progress=lines.append,
        sleep=sleeps.append,
        clock=lambda: 0.0,
        **kwargs,
    )


class StereoPairRunTests(unittest.TestCase):
    def test_successful_run(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        progress: list[str] = []
        sleeps: list[float] = []
        orchestrator = _orchestrator(server, progress, sleeps=sleeps)

        report = orchestrator.run()

        self.assertEqual(orchestrator.state, RunState.DONE)
        self.assertEqual(report.state, "DONE")
        self.assertFalse(report.partial)
        self.assertEqual(server.sink_names(), ["Stereo"])
        module = server.modules[report.module_id or 0]
        self.assertIn("media.class=Audio/Duplex", module.arg_tokens())
        self.assertIn("channel_map=[FL,FR]", module.arg_tokens())
        self.assertEqual(sleeps, [CONFIG.settle_delay])
        self.assertEqual(server.links, EXPECTED_LINKS)
        self.assertEqual(
            progress,
            [
                "Looking for pw-link command... found",
                "Looking for pactl command... found",
                "Looking for SpkA speaker... found",
                "Looking for SpkB speaker... found",
                "Creating module Stereo",
                "Wiring Stereo to SpkA and SpkB",
            ],
        )

    def test_only_four_links_from_virtual_device(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        _orchestrator(server).run()
        self.assertEqual(len(server.link_calls), 4)
        self.assertEqual(set(server.link_calls), EXPECTED_LINKS)

    def test_second_run_leaves_one_module(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        first = _orchestrator(server).run()
        progress: list[str] = []
        second = _orchestrator(server, progress).run()

        self.assertEqual(server.sink_names(), ["Stereo"])
        self.assertEqual(second.removed_modules, [first.module_id])
        self.assertIn(f"Removing module {first.module_id}", progress)
        self.assertEqual(server.links, EXPECTED_LINKS)

    def test_accumulated_stale_modules_are_all_removed(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        server.load_module("module-null-sink", ["sink_name=Stereo"])
        server.load_module("module-null-sink", ["sink_name=Stereo"])
        server.load_module("module-null-sink", ["sink_name=Other"])

        report = _orchestrator(server).run()

        self.assertEqual(report.removed_modules, [536, 537])
        self.assertEqual(sorted(server.sink_names()), ["Other", "Stereo"])

    def test_missing_speaker_aborts_without_mutation(self) -> None:
        for devices in ({"SpkA"}, {"SpkB"}, set()):
            server = _FakeAudioServer(devices)
            orchestrator = _orchestrator(server)
            with self.assertRaises(StereoPairError) as ctx:
                orchestrator.run()
            self.assertEqual(ctx.exception.exit_code, 1)
            self.assertEqual(orchestrator.state, RunState.ABORTED)
            self.assertNotIn(RunState.REMOVING_STALE_MODULE, orchestrator.tracker.history)
            self.assertEqual(server.mutations, [])
            self.assertEqual(server.link_calls, [])

    def test_missing_tool_aborts_with_dependency_error(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        server.available = False
        progress: list[str] = []
        orchestrator = _orchestrator(server, progress)
        with self.assertRaises(StereoPairError) as ctx:
            orchestrator.run()
        self.assertEqual(ctx.exception.exit_code, 2)
        self.assertEqual(ctx.exception.details, {"tool": "pw-link", "package": "pipewire-bin"})
        self.assertEqual(progress, ["Looking for pw-link command... not found (please install pipewire-bin package)"])
        self.assertEqual(orchestrator.state, RunState.ABORTED)

    def test_missing_pactl_reports_its_package(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        progress: list[str] = []
        orchestrator = StereoPairOrchestrator(
            CONFIG,
            pactl=cast(Any, _MissingTool()),
            pw_link=cast(Any, server),
            progress=progress.append,
            sleep=lambda _s: None,
            clock=lambda: 0.0,
        )
        with self.assertRaises(StereoPairError) as ctx:
            orchestrator.run()
        self.assertEqual(ctx.exception.exit_code, 2)
        self.assertEqual(ctx.exception.details, {"tool": "pactl", "package": "pulseaudio-utils"})
        self.assertEqual(
            progress,
            [
                "Looking for pw-link command... found",
                "Looking for pactl command... not found (please install pulseaudio-utils package)",
            ],
        )
        self.assertEqual(orchestrator.state, RunState.ABORTED)
        self.assertEqual(server.mutations, [])

    def test_link_failure_is_reported_not_aborted(self) -> None:
        failing = ("Stereo:capture_2", "SpkB:playback_FL")
        server = _FakeAudioServer({"SpkA", "SpkB"}, failing_links={failing})
        orchestrator = _orchestrator(server)

        report = orchestrator.run()

        self.assertEqual(orchestrator.state, RunState.DONE)
        self.assertEqual(len(server.link_calls), 4)
        self.assertTrue(report.partial)
        self.assertEqual([(r.request.source, r.request.destination) for r in report.failed_links], [failing])
        self.assertEqual(server.links, EXPECTED_LINKS - {failing})

    def test_load_failure_aborts_before_linking(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})

        def _fail_load(_name: str, _args: list[str]) -> int:
            raise RuntimeError("Failure: Module initialization failed")

        server.load_module = _fail_load  # type: ignore[method-assign]
        orchestrator = _orchestrator(server)
        with self.assertRaises(StereoPairError) as ctx:
            orchestrator.run()
        self.assertEqual(ctx.exception.exit_code, 3)
        self.assertEqual(orchestrator.tracker.history[-2], RunState.CREATING_MODULE)
        self.assertEqual(server.link_calls, [])


class StereoPairCheckAndTeardownTests(unittest.TestCase):
    def test_check_aborts_on_missing_speaker(self) -> None:
        server = _FakeAudioServer({"SpkA"})
        progress: list[str] = []
        orchestrator = _orchestrator(server, progress)
        with self.assertRaises(StereoPairError) as ctx:
            orchestrator.check()
        self.assertEqual(ctx.exception.exit_code, 1)
        self.assertEqual(orchestrator.state, RunState.ABORTED)
        self.assertEqual(progress[-1], "Looking for SpkB speaker... not found")
        self.assertEqual(server.mutations, [])

    def test_check_does_not_mutate(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        report = _orchestrator(server).check()
        self.assertEqual(report.state, "DONE")
        self.assertEqual(server.mutations, [])

    def test_teardown_removes_virtual_device(self) -> None:
        server = _FakeAudioServer({"SpkA", "SpkB"})
        created = _orchestrator(server).run()

        report = _orchestrator(server).teardown()

        self.assertEqual(report.removed_modules, [created.module_id])
        self.assertEqual(server.sink_names(), [])
        self.assertEqual(server.links, set())

    def test_teardown_without_module_is_noop(self) -> None:
        server = _FakeAudioServer(set())
        report = _orchestrator(server).teardown()
        self.assertEqual(report.removed_modules, [])
        self.assertEqual(report.state, "DONE")


if __name__ == "__main__":
    unittest.main()
