"""Triggers driven by call counts and elapsed time."""

from __future__ import annotations

import time
from typing import Any, Callable, TextIO

from .base import ElementLike, Settings, Trigger, c_atoi, parse_args


class CallCountTrigger(Trigger):
    """Fires on the listed call numbers (1-based)."""

    def __init__(self, settings: Settings | None = None, **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        self.call_count = 0
        self.call_counts: list[int] = []

    def configure(self, element: ElementLike) -> None:
        super().configure(element)
        self.call_counts.extend(
            c_atoi(text) for tag, text in parse_args(element) if tag == "callcount"
        )

    def evaluate(self, function_name: str, *args: Any) -> bool:
        if not self.active():
            self._log(f"Eval fn={function_name}, false")
            return False
        self.call_count += 1
        result = self.call_count in self.call_counts
        self._log(f"Eval fn={function_name}, {'true' if result else 'false'}")
        return result


class SingleTrigger(Trigger):
    """Fires once, on the first call, and never again while enabled."""

    def __init__(self, settings: Settings | None = None, **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        self.triggered = False

    def evaluate(self, function_name: str, *args: Any) -> bool:
        if self.active() and self.triggered:
            self._log(f"Eval fn={function_name}, false")
            return False
        self.triggered = True
        self._log(f"Eval fn={function_name}, true")
        return True


class TimerTrigger(Trigger):
    """Fires on every call once `wait` seconds have passed since start-up."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clock: Callable[[], float] = time.time,
        enabled: bool = True,
        verbose: bool | None = None,
        stream: TextIO | None = None,
    ) -> None:
        super().__init__(settings, enabled=enabled, verbose=verbose, stream=stream)
        self.wait = 0
        self.go = False
        self._clock = clock

    def configure(self, element: ElementLike) -> None:
        super().configure(element)
        for tag, text in parse_args(element):
            if tag == "wait":
                self.wait = c_atoi(text)

    def evaluate(self, function_name: str, *args: Any) -> bool:
        if self.go:
            return True
        elapsed = int(self._clock()) - int(self.settings.start_time)
        if self.active() and elapsed >= self.wait:
            self.go = True
        self._log(f"Eval fn={function_name}, go={int(self.go)}")
        return self.go