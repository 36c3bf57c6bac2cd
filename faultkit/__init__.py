"""Fault injection triggers, return-value analysis and error-set evaluation."""

__version__ = "0.1.0"

__all__ = [
    "base",
    "counting",
    "chance",
    "inspect_args",
    "netinspect",
    "stacktrace",
    "errordiff",
    "switchboard",
    "sedetector",
    "profiler",
]