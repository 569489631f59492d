"""
config.py - Decoder settings

Settings come from an optional YAML file:

    field_prefix: tezos            # root of registered field paths
    lazy_depth: 4                  # Lazy unwinding depth for field enumeration
    skip_truncated_dynamic: false  # see below
    log_level: WARNING

skip_truncated_dynamic is a compatibility mode. When a dynamic field
declares more bytes than are available, the decoder normally raises
NotEnoughData. With the mode on it consumes only the length prefix, emits
nothing for the field and carries on, which is how older dissector builds
behaved.
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

DEFAULT_FIELD_PREFIX = 'tezos'
DEFAULT_LAZY_DEPTH = 4


@dataclass
class DecoderConfig:
    field_prefix: str = DEFAULT_FIELD_PREFIX
    lazy_depth: int = DEFAULT_LAZY_DEPTH
    skip_truncated_dynamic: bool = False
    log_level: str = 'WARNING'

    def __post_init__(self):
        if self.lazy_depth < 0:
            raise ValueError(f"lazy_depth must be >= 0, got {self.lazy_depth}")
        if not self.field_prefix:
            raise ValueError("field_prefix must not be empty")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'DecoderConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[Union[str, Path]] = None) -> DecoderConfig:
    """Load settings from YAML; a missing path or file gives the defaults."""
    if path is None:
        return DecoderConfig()
    path = Path(path)
    if not path.exists():
        return DecoderConfig()
    with path.open('r', encoding='utf-8') as f:
        values = yaml.safe_load(f) or {}
    if not isinstance(values, dict):
        raise ValueError(f"Config {path} must be a mapping")
    return DecoderConfig.from_dict(values)
