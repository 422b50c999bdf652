"""Protocol interfaces for the harness commands."""
from .chain import StateChain

__all__ = ["StateChain"]
