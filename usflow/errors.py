from __future__ import annotations


class ConfigurationError(ValueError):
    """Meter configuration or measurement set cannot be processed.

    Raised for an absent configuration/measurement set, a zero path count or
    a path/measurement sequence shorter than ``num_paths``.  Never used for a
    single bad transit-time pair; those fall back to a zero velocity.
    """


class ResultReleasedError(RuntimeError):
    """A :class:`~usflow.flowmeter.FlowResult` was read after ``release()``."""
