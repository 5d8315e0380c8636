"""
ZEPA machine profiles.

A profile bundles the settings a ZepaMachine is built with. CLI flags and
keyword arguments override individual fields.

  memory_size  bytes of flat memory
  load_mode    'literal': LOAD reg, addr puts addr itself in reg
               'memory':  LOAD reg, addr reads the byte at addr
  max_steps    default step limit for run(); None runs until halt
"""

from typing import Any, Dict

LOAD_LITERAL = 'literal'
LOAD_MEMORY = 'memory'
LOAD_MODES = (LOAD_LITERAL, LOAD_MEMORY)

DEFAULT_PROFILE = 'default'

MACHINE_PROFILES: Dict[str, Dict[str, Any]] = {
    "default": {
        "memory_size": 1024,
        "load_mode": LOAD_LITERAL,
        "max_steps": 100_000,
        "description": "1 KB memory, literal LOAD, 100k step limit",
    },
    "original": {
        "memory_size": 64,
        "load_mode": LOAD_LITERAL,
        "max_steps": None,
        "description": "64-byte machine with no step limit, as the first ZEPA runner",
    },
    "strict": {
        "memory_size": 1024,
        "load_mode": LOAD_MEMORY,
        "max_steps": 100_000,
        "description": "1 KB memory, LOAD reads memory",
    },
}


def get_profile(name: str = DEFAULT_PROFILE, **overrides) -> Dict[str, Any]:
    """Return a copy of a profile with non-None overrides applied."""
    if name not in MACHINE_PROFILES:
        raise ValueError(
            f"Unknown profile '{name}' (choose from {', '.join(MACHINE_PROFILES)})")
    profile = dict(MACHINE_PROFILES[name])
    profile.update({k: v for k, v in overrides.items() if v is not None})
    if profile["load_mode"] not in LOAD_MODES:
        raise ValueError(f"Unknown load mode '{profile['load_mode']}'")
    return profile
