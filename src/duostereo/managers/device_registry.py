from __future__ import annotations

import logging

from duostereo.errors import backend_error
from duostereo.integrations.pactl import PactlIntegration


logger = logging.getLogger(__name__)

NAME_PROPERTIES = ("device.alias", "alsa.name")


class DeviceRegistry:
    def __init__(self, *, pactl: PactlIntegration) -> None:
        self._pactl = pactl

    def device_names(self) -> set[str]:
        try:
            objects = self._pactl.list_objects_detailed()
        except (RuntimeError, OSError) as exc:
            raise backend_error(
                "failed to query audio server devices",
                {"operation": "list", "error": str(exc)},
            ) from exc

        names: set[str] = set()
        for entry in objects:
            props = entry.get("properties")
            if not isinstance(props, dict):
                continue
            for key in NAME_PROPERTIES:
                value = props.get(key)
                if isinstance(value, str) and value:
                    names.add(value)
        return names

    def endpoint_present(self, name: str) -> bool:
        names = self.device_names()
        present = name in names
        if not present:
            logger.info("registry.missing name=%r known=%s", name, sorted(names))
        return present
