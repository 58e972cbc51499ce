# env.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Protocol


class EnvProvider(Protocol):
    """Anything that can hand out the environment for spawned steps."""

    def env(self) -> List[str]:
        ...


def build_env(secrets: Optional[Mapping[str, str]] = None, base: Optional[Mapping[str, str]] = None) -> List[str]:
    """
    Return `KEY=VALUE` strings for spawned processes.

    Starts from `base` (default: os.environ) and appends each secret whose key
    is not already set to a non-empty value there. Existing variables win.
    """
    base_env = dict(os.environ if base is None else base)
    out = [f"{k}={v}" for k, v in base_env.items()]
    for key, value in (secrets or {}).items():
        if not base_env.get(key):
            out.append(f"{key}={value}")
    return out


def env_to_dict(env: Iterable[str]) -> Dict[str, str]:
    """Parse `KEY=VALUE` strings. Later entries override earlier ones; malformed entries are skipped."""
    out: Dict[str, str] = {}
    for item in env:
        key, sep, value = item.partition("=")
        if sep and key:
            out[key] = value
    return out


@dataclass
class StaticEnvProvider:
    """EnvProvider over a fixed secret mapping, overlaid on the process environment."""
    secrets: Dict[str, str] = field(default_factory=dict)

    def env(self) -> List[str]:
        return build_env(self.secrets)
