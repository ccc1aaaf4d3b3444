"""Exception taxonomy for the brepCAD kernel.

- MathError:       degenerate numeric input (zero vector normalization, ...)
- TopologyError:   locally inconsistent builder call (open cycle, ...)
- ValidationError: aggregate report of every defect found in a full pass
- OperationError:  a constructive or boolean operation cannot produce a
                   valid solid from its inputs
- DescriptionError: malformed model description handed to the pipeline

All of them derive from :class:`KernelError` and carry a ``details`` dict
with structured identification of the offending entities.
"""

from __future__ import annotations


class KernelError(ValueError):
    """Base class for every error raised by the kernel."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details or {}


class MathError(KernelError):
    """Degenerate numeric input."""


class TopologyError(KernelError):
    """Locally inconsistent construction step."""

    def __init__(self, message, entities=(), details=None):
        super().__init__(message, details)
        self.entities = tuple(entities)


class ValidationError(KernelError):
    """Validation found one or more defects.

    ``report`` is the complete :class:`brepcad.validate.ValidationReport`.
    """

    def __init__(self, report):
        self.report = report
        count = len(report.defects)
        super().__init__(
            f'validation failed with {count} defect(s):\n{report.format()}',
            {'defects': [d.to_json() for d in report.defects]})


class OperationError(KernelError):
    """An operation cannot produce a valid result from its inputs."""

    def __init__(self, operation, message, report=None, details=None):
        self.operation = operation
        self.report = report
        super().__init__(f'{operation}: {message}', details)


class DescriptionError(KernelError):
    """A model description is malformed (unknown op, cycle, bad input)."""

    def __init__(self, message, node=None, details=None):
        self.node = node
        if node is not None:
            message = f'node {node!r}: {message}'
        super().__init__(message, details)


__all__ = [
    'KernelError',
    'MathError',
    'TopologyError',
    'ValidationError',
    'OperationError',
    'DescriptionError',
]
