# -*- coding: utf-8 -*-
"""brepCAD: a code-first boundary-representation kernel."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("brepCAD")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

from brepcad.config import KernelConfig, get_config
from brepcad.errors import (
    KernelError,
    MathError,
    TopologyError,
    ValidationError,
    OperationError,
    DescriptionError,
)
from brepcad.log import configure_logging, get_logger
from brepcad.topology import Handle, Solid
from brepcad.builder import TopologyBuilder
from brepcad.validate import ValidationReport, validate_solid

__all__ = [
    '__version__',
    'KernelConfig',
    'get_config',
    'KernelError',
    'MathError',
    'TopologyError',
    'ValidationError',
    'OperationError',
    'DescriptionError',
    'configure_logging',
    'get_logger',
    'Handle',
    'Solid',
    'TopologyBuilder',
    'ValidationReport',
    'validate_solid',
]
