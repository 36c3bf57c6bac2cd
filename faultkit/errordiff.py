"""Score profiler-reported error codes against documented ones."""

from __future__ import annotations

import argparse
import errno
import itertools
import json
import sys
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

MAGIC_END = 12345
SYSCALL_MAGIC_END = 0
SYSCALL_INTERRUPT_LIMIT = -500


@dataclass(frozen=True)
class FunctionScore:
    """How well the reported errors of one function match the documented ones."""

    name: str | int
    found: int
    missing: int
    false_positives: int
    accuracy: int


def score_function(
    name: str | int, expected: Iterable[int], reported: Iterable[int]
) -> FunctionScore:
    """Compare the sets of documented and reported error codes of one function."""
    expected_set = set(expected)
    reported_set = set(reported)
    found = len(reported_set & expected_set)
    false_positives = len(reported_set - expected_set)
    missing = len(expected_set) - found
    if not found and not false_positives and not expected_set:
        accuracy = 100
    else:
        accuracy = found * 100 // max(false_positives + len(expected_set), 1)
    return FunctionScore(name, found, missing, false_positives, accuracy)


def normalize_syscall_errors(values: Iterable[int]) -> set[int]:
    """Turn raw negative syscall returns into errno values."""
    return {
        errno.EINTR if value < SYSCALL_INTERRUPT_LIMIT else -value for value in values
    }


def compare_tables(
    expected: Mapping[str | int, Iterable[int]],
    reported: Mapping[str | int, Iterable[int]],
) -> list[FunctionScore]:
    """Score every documented function that the profiler also reported on."""
    return [
        score_function(name, values, reported[name])
        for name, values in expected.items()
        if name in reported
    ]


def format_report(scores: Sequence[FunctionScore]) -> str:
    """Render the scores as table rows followed by the average accuracy."""
    lines = [
        f"|-\n| {score.name} || {score.found} || {score.missing} || "
        f"{score.false_positives} || {score.accuracy}%"
        for score in scores
    ]
    average = (
        sum(score.accuracy for score in scores) / len(scores)
        if scores
        else float("nan")
    )
    lines.append(f"Avg(accuracy): {average:g}% over {len(scores)} values")
    return "\n".join(lines) + "\n"


def _load_table(path: str, sentinel: int, syscalls: bool) -> dict[str | int, list[int]]:
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object mapping names to error lists")
    table: dict[str | int, list[int]] = {}
    for key, values in data.items():
        name: str | int = int(key) if syscalls else key
        table[name] = list(itertools.takewhile(lambda v: v != sentinel, values))
    return table


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compare documented error codes with profiler results."
    )
    parser.add_argument("expected", help="JSON table of documented error codes")
    parser.add_argument("reported", help="JSON table of profiler error codes")
    parser.add_argument(
        "--syscalls",
        action="store_true",
        help="tables are keyed by syscall number and hold raw return values",
    )
    options = parser.parse_args(argv)

    sentinel = SYSCALL_MAGIC_END if options.syscalls else MAGIC_END
    expected = _load_table(options.expected, sentinel, options.syscalls)
    reported = _load_table(options.reported, sentinel, options.syscalls)
    if options.syscalls:
        reported = {
            name: sorted(normalize_syscall_errors(values))
            for name, values in reported.items()
        }
    sys.stdout.write(format_report(compare_tables(expected, reported)))
    return 0