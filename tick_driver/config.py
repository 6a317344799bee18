"""Configuration loading for the fixed-step tick loop."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable


DEFAULT_TICK_RATE_HZ = 30.0
DEFAULT_MAX_CATCHUP_TICKS = 4

TRUE_VALUES = {"1", "true", "yes", "on", "y"}
FALSE_VALUES = {"0", "false", "no", "off", "n"}


@dataclass(frozen=True, slots=True)
class LoopConfig:
    """How often the runner is advanced and how far it may catch up."""

    tick_rate_hz: float = DEFAULT_TICK_RATE_HZ
    max_catchup_ticks: int = DEFAULT_MAX_CATCHUP_TICKS
    trace: bool = False
    realtime: bool = False

    def __post_init__(self) -> None:
        if self.tick_rate_hz <= 0:
            raise ValueError("tick_rate_hz must be > 0")
        if self.max_catchup_ticks < 1:
            raise ValueError("max_catchup_ticks must be >= 1")

    @property
    def step(self) -> float:
        """Seconds of elapsed time passed to the runner per tick."""
        return 1.0 / self.tick_rate_hz


Warn = Callable[[str], None]


def load_loop_config(env_file: str = ".env", warn: Warn | None = None) -> LoopConfig:
    """Load loop config from an env file, with safe fallbacks."""

    return loop_config_from_env(parse_env_file(env_file, warn=warn), warn=warn)


def loop_config_from_env(env: dict[str, str], warn: Warn | None = None) -> LoopConfig:
    """Build a LoopConfig from already-parsed env values."""

    return LoopConfig(
        tick_rate_hz=env_float(
            env,
            "TICK_RATE_HZ",
            default=DEFAULT_TICK_RATE_HZ,
            minimum=1e-6,
            warn=warn,
        ),
        max_catchup_ticks=env_int(
            env,
            "MAX_CATCHUP_TICKS",
            default=DEFAULT_MAX_CATCHUP_TICKS,
            minimum=1,
            warn=warn,
        ),
        trace=env_bool(env, "TRACE", default=False, warn=warn),
        realtime=env_bool(env, "REALTIME", default=False, warn=warn),
    )


def parse_env_file(path: str, warn: Warn | None = None) -> dict[str, str]:
    """Load simple KEY=VALUE settings; malformed lines are skipped."""
    env_path = Path(path)
    if not env_path.exists():
        return {}

    env: dict[str, str] = {}
    for lineno, line in enumerate(env_path.read_text(encoding="utf-8").splitlines(), start=1):
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        if text.startswith("export "):
            text = text[7:].strip()
        if "=" not in text:
            if warn is not None:
                warn(f"Ignoring invalid env line {lineno} in {path!r}: {line!r}")
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            if warn is not None:
                warn(f"Ignoring empty key on env line {lineno} in {path!r}")
            continue
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        env[key] = value
    return env


def env_float(
    env: dict[str, str],
    key: str,
    default: float,
    minimum: float,
    warn: Warn | None = None,
) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        if warn is not None:
            warn(f"{key} must be a number, got {raw!r}. Using {default}.")
        return default
    if value < minimum:
        if warn is not None:
            warn(f"{key} must be >= {minimum}, got {value}. Using {default}.")
        return default
    return value


def env_int(
    env: dict[str, str],
    key: str,
    default: int,
    minimum: int,
    warn: Warn | None = None,
) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        if warn is not None:
            warn(f"{key} must be an integer, got {raw!r}. Using {default}.")
        return default
    if value < minimum:
        if warn is not None:
            warn(f"{key} must be >= {minimum}, got {value}. Using {default}.")
        return default
    return value


def env_bool(env: dict[str, str], key: str, default: bool, warn: Warn | None = None) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default

    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    if warn is not None:
        warn(
            f"{key} must be one of {sorted(TRUE_VALUES | FALSE_VALUES)}, got {raw!r}. "
            f"Using {default}."
        )
    return default
