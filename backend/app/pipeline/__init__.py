from .graph import PipelineCoordinator, PipelineResult, build_graph
from .retry import RetryPolicy, is_transient_error, retry_call
from .state import InvalidTransitionError, JobStatus, PipelineState, is_terminal, validate_transition

__all__ = [
    "InvalidTransitionError",
    "JobStatus",
    "PipelineCoordinator",
    "PipelineResult",
    "PipelineState",
    "RetryPolicy",
    "build_graph",
    "is_terminal",
    "is_transient_error",
    "retry_call",
    "validate_transition",
]
