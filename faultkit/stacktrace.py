"""Trigger that records the call stack of the first intercepted call."""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import Any, TextIO

from .base import ElementLike, Settings, Trigger, parse_args

STACK_DEPTH = 10


class PrintStackTrigger(Trigger):
    """Writes the current stack to a configured file once, and always fires."""

    def __init__(self, settings: Settings | None = None, **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        self.path: Path | None = None
        self._file: TextIO | None = None

    def configure(self, element: ElementLike) -> None:
        super().configure(element)
        for tag, text in parse_args(element):
            if tag == "file":
                path = Path(text)
                path.unlink(missing_ok=True)
                if self._file is not None:
                    self._file.close()
                self._file = path.open("a")
                self.path = path

    def evaluate(self, function_name: str, *args: Any) -> bool:
        if not self.active():
            self._log(f"Eval fn={function_name}, false")
            return False
        if self._file is not None:
            self._file.write("".join(traceback.format_stack(limit=STACK_DEPTH)))
            self._file.close()
            self._file = None
        self._log(f"Eval fn={function_name}, true")
        return True