"""Triggers driven by chance and by an externally switched panel."""

from __future__ import annotations

import random
import time
from typing import Any

from .base import ElementLike, Settings, Trigger, c_atoi, parse_args


class RandomTrigger(Trigger):
    """Fires with a configured percentage probability."""

    def __init__(self, settings: Settings | None = None, **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        self.percent = 0
        self._rng = random.Random()
        self._reseed_pending = False

    def configure(self, element: ElementLike) -> None:
        super().configure(element)
        for tag, text in parse_args(element):
            if tag == "percent":
                self.percent = c_atoi(text)
        if not self.settings.random_seed:
            self.settings.random_seed = int(time.time())
        self._rng.seed(self.settings.random_seed)

    def reseed(self, seed: int) -> None:
        """Restart the random sequence from `seed` at the next evaluation."""
        self.settings.random_seed = seed
        self._reseed_pending = True

    def evaluate(self, function_name: str, *args: Any) -> bool:
        if self._reseed_pending:
            self._rng.seed(self.settings.random_seed)
            self._reseed_pending = False
        result = self.active() and self._rng.randrange(100) < self.percent
        self._log(
            f"Eval fn={function_name}, probability={self.percent} = "
            f"{'true' if result else 'false'}"
        )
        return result


class SwitchPanel(Trigger):
    """Fires when its slot in the shared switch panel is set."""

    default_verbose = True

    def __init__(self, settings: Settings | None = None, **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        self.index = 0

    def configure(self, element: ElementLike) -> None:
        super().configure(element)
        for tag, text in parse_args(element):
            if tag == "index":
                self.index = c_atoi(text)
                self._log(f"Init: index={self.index}")

    def evaluate(self, function_name: str, *args: Any) -> bool:
        result = self.active() and bool(self.settings.switch_panel[self.index])
        self._log(
            f"Eval fn={function_name}, array[{self.index}] = {int(result)}"
        )
        return result