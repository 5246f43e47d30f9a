"""Two-leg concurrent order execution."""

from crossarb.execution.coordinator import ExecutionConfigError, ExecutionCoordinator, PartialFillHandler

__all__ = ["ExecutionConfigError", "ExecutionCoordinator", "PartialFillHandler"]
