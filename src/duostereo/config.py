from __future__ import annotations

from dataclasses import dataclass
import math
import os

from duostereo.constants import (
    DEFAULT_DESCRIPTION,
    DEFAULT_LEFT_SPEAKER,
    DEFAULT_RIGHT_SPEAKER,
    DEFAULT_SETTLE_DELAY_S,
    DEFAULT_SETTLE_TIMEOUT_S,
    DEFAULT_VIRTUAL_NAME,
    ENV_PREFIX,
)


@dataclass(frozen=True)
class StereoPairConfig:
    virtual_name: str = DEFAULT_VIRTUAL_NAME
    description: str = DEFAULT_DESCRIPTION
    left: str = DEFAULT_LEFT_SPEAKER
    right: str = DEFAULT_RIGHT_SPEAKER
    settle_delay: float = DEFAULT_SETTLE_DELAY_S
    settle_timeout: float = DEFAULT_SETTLE_TIMEOUT_S


def _env(key: str, default: str) -> str:
    value = os.getenv(ENV_PREFIX + key)
    if value is None:
        return default
    return value


def _pick(override: str | None, env_key: str, default: str) -> str:
    value = override if override is not None else _env(env_key, default)
    value = value.strip()
    if not value:
        raise ValueError(f"{env_key.lower()} must not be empty")
    return value


def resolve_config(
    *,
    virtual_name: str | None = None,
    description: str | None = None,
    left: str | None = None,
    right: str | None = None,
    settle_delay: float | None = None,
    settle_timeout: float | None = None,
) -> StereoPairConfig:
    """Layer explicit overrides over ``DUOSTEREO_*`` environment variables over defaults."""
    delay = float(settle_delay if settle_delay is not None else _env("SETTLE_DELAY", str(DEFAULT_SETTLE_DELAY_S)))
    timeout = float(
        settle_timeout if settle_timeout is not None else _env("SETTLE_TIMEOUT", str(DEFAULT_SETTLE_TIMEOUT_S))
    )
    if not (math.isfinite(delay) and math.isfinite(timeout)):
        raise ValueError("settle delay and timeout must be finite numbers")
    if delay < 0 or timeout < 0:
        raise ValueError("settle delay and timeout must be non-negative")

    return StereoPairConfig(
        virtual_name=_pick(virtual_name, "VIRTUAL_NAME", DEFAULT_VIRTUAL_NAME),
        description=_pick(description, "DESCRIPTION", DEFAULT_DESCRIPTION),
        left=_pick(left, "LEFT", DEFAULT_LEFT_SPEAKER),
        right=_pick(right, "RIGHT", DEFAULT_RIGHT_SPEAKER),
        settle_delay=delay,
        settle_timeout=timeout,
    )
