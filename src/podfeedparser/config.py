from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .tokenizer import DEFAULT_CHUNK_SIZE

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _default_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


def _env_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class IngestConfig:
    inputs_dir: str = "inputs"
    outputs_dir: str = "outputs"
    max_workers: int = field(default_factory=_default_workers)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    recover: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "IngestConfig":
        """Build a config from ``PODFEED_*`` variables, defaulting the rest."""
        env = os.environ if env is None else env
        defaults = cls()

        max_workers = _env_int(env, "PODFEED_WORKERS")
        chunk_size = _env_int(env, "PODFEED_CHUNK_SIZE")
        recover = env.get("PODFEED_RECOVER")

        return cls(
            inputs_dir=env.get("PODFEED_INPUTS") or defaults.inputs_dir,
            outputs_dir=env.get("PODFEED_OUTPUTS") or defaults.outputs_dir,
            max_workers=max_workers or defaults.max_workers,
            chunk_size=chunk_size or defaults.chunk_size,
            recover=(
                recover.strip().lower() in _TRUE_VALUES
                if recover is not None
                else defaults.recover
            ),
            log_level=(env.get("PODFEED_LOG_LEVEL") or defaults.log_level).upper(),
        )
