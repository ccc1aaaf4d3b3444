"""Kernel configuration for brepCAD.

The kernel uses a single tolerance everywhere.  It is resolved once, when
this module is first imported, from the environment: ::

    BREPCAD_EPSILON           geometric tolerance (default 1e-7)
    BREPCAD_CURVE_SEGMENTS    max segments used when faceting curves (64)
    BREPCAD_REVOLVE_SEGMENTS  angular steps for a full revolution (32)
    BREPCAD_SWEEP_SEGMENTS    samples along curved sweep paths (24)
    BREPCAD_LOG_LEVEL         structlog level used by configure_logging

Copyright (c) 2025 brepCAD contributors
MIT License
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional


@dataclass(frozen=True)
class KernelConfig:
    """Immutable tolerance and sampling settings."""

    epsilon: float = 1e-7
    distinct_min_distance: float = 5e-7
    edge_samples: int = 3
    curve_segments: int = 64
    revolve_segments: int = 32
    sweep_segments: int = 24
    log_level: str = 'WARNING'

    def __post_init__(self):
        if not (self.epsilon > 0.0):
            raise ValueError(f'epsilon must be positive, got {self.epsilon}')
        if self.distinct_min_distance < self.epsilon:
            raise ValueError('distinct_min_distance must not be smaller than epsilon')
        if self.edge_samples < 2:
            raise ValueError('edge_samples must be at least 2')
        for name in ('curve_segments', 'revolve_segments', 'sweep_segments'):
            if getattr(self, name) < 3:
                raise ValueError(f'{name} must be at least 3')

    def with_overrides(self, **kwargs) -> "KernelConfig":
        return replace(self, **kwargs)


_ENV_KEYS = {
    'BREPCAD_EPSILON': ('epsilon', float),
    'BREPCAD_CURVE_SEGMENTS': ('curve_segments', int),
    'BREPCAD_REVOLVE_SEGMENTS': ('revolve_segments', int),
    'BREPCAD_SWEEP_SEGMENTS': ('sweep_segments', int),
    'BREPCAD_LOG_LEVEL': ('log_level', str),
}


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> KernelConfig:
    """Build a :class:`KernelConfig` from ``BREPCAD_*`` variables.

    Parameters
    ----------
    environ : mapping, optional
        Source of variables; defaults to ``os.environ``.

    Raises
    ------
    ValueError
        If a variable cannot be converted or the result is inconsistent.
    """
    if environ is None:
        environ = os.environ
    values = {}
    for key, (field_name, conv) in _ENV_KEYS.items():
        raw = environ.get(key)
        if raw is None or raw == '':
            continue
        try:
            values[field_name] = conv(raw)
        except ValueError as exc:
            raise ValueError(f'bad value for {key}: {raw!r}') from exc
    if 'epsilon' in values:
        # keep the "distinct" threshold a fixed multiple of the tolerance
        values.setdefault('distinct_min_distance', values['epsilon'] * 5.0)
    if 'log_level' in values:
        values['log_level'] = values['log_level'].upper()
    return KernelConfig(**values)


_config = config_from_env()


def get_config() -> KernelConfig:
    """Return the process-wide kernel configuration."""
    return _config


__all__ = ['KernelConfig', 'config_from_env', 'get_config']
