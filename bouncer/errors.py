"""Error taxonomy shared by the core primitives and the commands."""
from __future__ import annotations


class BouncerError(Exception):
    """Base class for every error raised by the harness."""


class ChainConnectionError(BouncerError, ConnectionError):
    """The chain endpoint is unreachable or the connection dropped."""


class SubscriptionError(BouncerError):
    """The block/event stream was torn down unexpectedly."""


class SubmissionError(BouncerError):
    """A transaction was rejected by the chain."""

    transient = False


class TransientSubmissionError(SubmissionError):
    """Rejection that is expected to clear on resubmission (e.g. nonce clash)."""

    transient = True


class PermanentSubmissionError(SubmissionError):
    """Rejection that resubmitting will not fix."""


class TimedOut(BouncerError, TimeoutError):
    """A deadline elapsed before the awaited work settled."""


class ValidationError(BouncerError, ValueError):
    """Malformed caller input, such as an unparsable amount."""
