from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from duostereo.constants import (
    EXIT_BACKEND_FAILED,
    EXIT_MISSING_DEPENDENCY,
    EXIT_MISSING_DEVICE,
    EXIT_TIMEOUT,
)


@dataclass
class StereoPairError(Exception):
    code: str
    message: str
    exit_code: int = 1
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def dependency_error(message: str, details: dict[str, Any] | None = None) -> StereoPairError:
    return StereoPairError(code="E_DEP_MISSING", message=message, exit_code=EXIT_MISSING_DEPENDENCY, details=details)


def device_error(message: str, details: dict[str, Any] | None = None) -> StereoPairError:
    return StereoPairError(code="E_DEVICE_MISSING", message=message, exit_code=EXIT_MISSING_DEVICE, details=details)


def backend_error(message: str, details: dict[str, Any] | None = None) -> StereoPairError:
    return StereoPairError(code="E_BACKEND_FAILED", message=message, exit_code=EXIT_BACKEND_FAILED, details=details)


def timeout_error(message: str, details: dict[str, Any] | None = None) -> StereoPairError:
    return StereoPairError(code="E_TIMEOUT", message=message, exit_code=EXIT_TIMEOUT, details=details)
