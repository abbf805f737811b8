"""Typed domain models shared by managers and the orchestrator."""

from duostereo.domain.models import (
    LinkRequest,
    LinkResult,
    LoadedModule,
    PhysicalEndpoint,
    RunReport,
    VirtualDeviceSpec,
)

__all__ = [
    "LinkRequest",
    "LinkResult",
    "LoadedModule",
    "PhysicalEndpoint",
    "RunReport",
    "VirtualDeviceSpec",
]
