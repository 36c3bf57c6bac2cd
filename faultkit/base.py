"""Common machinery shared by every fault-injection trigger."""

from __future__ import annotations

import sys
import time
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, TextIO, Union

SWITCH_PANEL_SIZE = 50

ElementLike = Union[ET.Element, str, bytes]


@dataclass
class Settings:
    """Process-wide switches that every trigger consults."""

    enabled: bool = True
    switch_panel: list[int] = field(default_factory=lambda: [0] * SWITCH_PANEL_SIZE)
    random_seed: int = 0
    start_time: float = field(default_factory=time.time)


def c_atoi(text: str | None) -> int:
    """Parse a leading decimal integer the lenient way: junk yields 0."""
    if not text:
        return 0
    stripped = text.lstrip(" \t\n\r\v\f")
    sign = 1
    if stripped[:1] in ("+", "-"):
        if stripped[0] == "-":
            sign = -1
        stripped = stripped[1:]
    digits = []
    for char in stripped:
        if not char.isdigit() or not char.isascii():
            break
        digits.append(char)
    return sign * int("".join(digits)) if digits else 0


def _as_element(element: ElementLike) -> ET.Element:
    if isinstance(element, (str, bytes)):
        return ET.fromstring(element)
    return element


def parse_args(element: ElementLike) -> list[tuple[str, str]]:
    """Return (tag, text) for each child element of an <args> element that has text."""
    root = _as_element(element)
    return [(child.tag, child.text) for child in root if child.text is not None]


class Trigger(ABC):
    """A decision point that says whether a fault should be injected."""

    default_verbose = False

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        enabled: bool = True,
        verbose: bool | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.enabled = enabled
        self.verbose = self.default_verbose if verbose is None else verbose
        self._stream = stream

    @property
    def name(self) -> str:
        return type(self).__name__

    def active(self) -> bool:
        """True when both the global switch and this trigger's switch are on."""
        return bool(self.settings.enabled and self.enabled)

    def _log(self, message: str) -> None:
        if self.verbose:
            stream = self._stream if self._stream is not None else sys.stderr
            stream.write(f"{self.name}::{message}\r\n")

    def configure(self, element: ElementLike) -> None:
        """Read settings from an <args> element; the base trigger takes none."""
        self._log("Init")

    @abstractmethod
    def evaluate(self, function_name: str, *args: Any) -> bool:
        """Decide whether the intercepted call should fail."""