"""
Funge VM - Run configuration

Settings resolve in three layers, later ones win:
  1. a named profile from PROFILES
  2. a JSON config file ({"profile": "...", "max_ticks": ..., ...})
  3. explicit overrides (CLI flags)

Unknown-instruction policy:
  noop      treat the cell as a no-op (lenient; blank and sparse
            regions full of stray characters keep running)
  reflect   reverse the IP, as Funge-98 specifies for unimplemented
            instructions
  kill      terminate the IP that hit it
"""

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, List, Optional

UNKNOWN_POLICIES = ('noop', 'reflect', 'kill')


class ConfigError(Exception):
    """Invalid profile, policy or config file."""


@dataclass
class VMConfig:
    max_ticks: Optional[int] = None       # None = run until the program ends
    unknown_instruction: str = 'noop'
    free_markers: bool = False            # spaces and ;...; cost zero ticks
    sgml_spaces: bool = True              # string mode collapses space runs
    seed: Optional[int] = None            # `?` RNG seed
    trace: bool = False
    argv: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.unknown_instruction not in UNKNOWN_POLICIES:
            raise ConfigError(
                f"Unknown instruction policy {self.unknown_instruction!r}; "
                f"expected one of {', '.join(UNKNOWN_POLICIES)}")
        if self.max_ticks is not None and self.max_ticks < 0:
            raise ConfigError(f"max_ticks must be >= 0, got {self.max_ticks}")

    def with_overrides(self, **overrides) -> 'VMConfig':
        """Copy with the non-None overrides applied."""
        known = {f.name for f in fields(self)}
        bad = set(overrides) - known
        if bad:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(bad))}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


# ──────────────────────────────────────────────
# Profiles
# ──────────────────────────────────────────────

PROFILES = {
    'lenient': {
        'description': 'Unknown instructions are no-ops (default)',
        'unknown_instruction': 'noop',
    },
    'befunge98': {
        'description': 'Funge-98 behaviour: unknown instructions reflect',
        'unknown_instruction': 'reflect',
    },
    'strict': {
        'description': 'Unknown instructions kill the IP; 10M tick limit',
        'unknown_instruction': 'kill',
        'max_ticks': 10_000_000,
    },
}

DEFAULT_PROFILE = 'lenient'


def from_profile(name: str = DEFAULT_PROFILE, **overrides) -> VMConfig:
    try:
        profile = PROFILES[name]
    except KeyError:
        raise ConfigError(
            f"Unknown profile {name!r}; expected one of {', '.join(PROFILES)}") from None
    settings = {k: v for k, v in profile.items() if k != 'description'}
    return VMConfig(**settings).with_overrides(**overrides)


def load_config(path, **overrides) -> VMConfig:
    """Read a JSON config file, then apply overrides."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")
    profile = data.pop('profile', DEFAULT_PROFILE)
    config = from_profile(profile, **data)
    return config.with_overrides(**overrides)
