from __future__ import annotations

import logging

from duostereo.domain.models import LinkRequest, LinkResult, PhysicalEndpoint, VirtualDeviceSpec
from duostereo.integrations.pw_link import PwLinkIntegration


logger = logging.getLogger(__name__)


class LinkGraphBuilder:
    def __init__(self, *, pw_link: PwLinkIntegration) -> None:
        self._pw_link = pw_link

    @staticmethod
    def plan(
        virtual: VirtualDeviceSpec,
        left: PhysicalEndpoint,
        right: PhysicalEndpoint,
    ) -> list[LinkRequest]:
        # Each speaker gets one program channel on both of its drivers.
        left_src = virtual.capture_port(1)
        right_src = virtual.capture_port(2)
        return [
            LinkRequest(left_src, left.playback_fl),
            LinkRequest(left_src, left.playback_fr),
            LinkRequest(right_src, right.playback_fl),
            LinkRequest(right_src, right.playback_fr),
        ]

    def build(self, requests: list[LinkRequest]) -> list[LinkResult]:
        results: list[LinkResult] = []
        for request in requests:
            try:
                self._pw_link.link(request.source, request.destination)
            except (RuntimeError, OSError) as exc:
                logger.warning("link.failed source=%r destination=%r error=%s", request.source, request.destination, exc)
                results.append(LinkResult(request=request, ok=False, error=str(exc)))
                continue
            logger.info("link.created source=%r destination=%r", request.source, request.destination)
            results.append(LinkResult(request=request, ok=True))
        return results
