"""Core primitives every command composes on."""
from .connection import ChainConnection, configure_connection, get_connection
from .governance import GovernanceSubmitter, submit_governance_extrinsic
from .observer import EventWatch, ObserveOptions, observe_event
from .runner import run_command, run_with_timeout

__all__ = [
    "ChainConnection",
    "EventWatch",
    "GovernanceSubmitter",
    "ObserveOptions",
    "configure_connection",
    "get_connection",
    "observe_event",
    "run_command",
    "run_with_timeout",
    "submit_governance_extrinsic",
]
