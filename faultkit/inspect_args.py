"""Triggers that decide by looking at the intercepted call's arguments."""

from __future__ import annotations

import sys
import threading
from enum import IntEnum
from typing import Any, Iterable, Sequence

from .base import ElementLike, Settings, Trigger, c_atoi, parse_args

READ_TRIGGER_SIZE = 1024


class ArgType(IntEnum):
    """Kind of argument an ExamineArgs trigger skips or inspects."""

    INT = 1
    STRING = 2
    UNDEFINED = -1


class CompareMode(IntEnum):
    """How an inspected argument is matched against the reference table."""

    EQUAL = 50
    AND = 51
    STRSTR = 52
    STRCMP = 53
    UNDEFINED = -1


_TYPE_NAMES = {
    "int": ArgType.INT,
    "string": ArgType.STRING,
    "char": ArgType.INT,  # promoted to int when passed through varargs
}

_COMPARE_NAMES = {
    "equal": CompareMode.EQUAL,
    "and": CompareMode.AND,
    "strstr": CompareMode.STRSTR,
    "strcmp": CompareMode.STRCMP,
}


class ExamineArgs(Trigger):
    """Fires when one argument matches any entry of a chosen reference table."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        int_tables: Iterable[Sequence[int]] = (),
        string_tables: Iterable[Sequence[str]] = (),
        **kwargs: Any,
    ) -> None:
        super().__init__(settings, **kwargs)
        self.int_tables = [list(table) for table in int_tables]
        self.string_tables = [list(table) for table in string_tables]
        self.skip_types: list[ArgType] = []
        self.arg_type = ArgType.UNDEFINED
        self.arg_compare = CompareMode.UNDEFINED
        self.table_index = 0

    def _warn(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write(f"{message}\r\n")

    def configure(self, element: ElementLike) -> None:
        super().configure(element)
        for tag, text in parse_args(element):
            if tag == "skip":
                kind = _TYPE_NAMES.get(text)
                if kind is None:
                    self._warn(f"BUMMER 1, what is this type: {text}")
                else:
                    self.skip_types.append(kind)
            elif tag == "argType":
                kind = _TYPE_NAMES.get(text)
                if kind is None:
                    self._warn(f"BUMMER 2, what is this type: {text}")
                else:
                    self.arg_type = kind
            elif tag == "argCompare":
                mode = _COMPARE_NAMES.get(text)
                if mode is None:
                    self._warn(f"BUMMER 3, what is this type: {text}")
                else:
                    self.arg_compare = mode
            elif tag == "argBaseArrayChooser":
                self.table_index = c_atoi(text)
        if (
            self.arg_type is ArgType.UNDEFINED
            or self.arg_compare is CompareMode.UNDEFINED
        ):
            self._warn("BUMMER, we are not properly configured!")

    def evaluate(self, function_name: str, *args: Any) -> bool:
        result = False
        if self.active():
            position = len(self.skip_types)
            if self.arg_type is ArgType.INT:
                examine = int(args[position])
                table = self.int_tables[self.table_index]
                if self.arg_compare is CompareMode.EQUAL:
                    result = any(value == examine for value in table)
                elif self.arg_compare is CompareMode.AND:
                    result = any(value & examine for value in table)
            elif self.arg_type is ArgType.STRING:
                examine = args[position]
                table = self.string_tables[self.table_index]
                if self.arg_compare is CompareMode.STRSTR:
                    result = any(needle in examine for needle in table)
                elif self.arg_compare is CompareMode.STRCMP:
                    result = any(entry == examine for entry in table)
        self._log(f"Eval fn={function_name}, {int(result)}")
        return result


class ReadInspector(Trigger):
    """Fires on read(fd, buf, size) calls that read 1024 bytes from stdin."""

    def evaluate(self, function_name: str, *args: Any) -> bool:
        fd, _buffer, size = args[:3]
        result = self.active() and fd == 0 and size == READ_TRIGGER_SIZE
        self._log(f"Eval fn={function_name}, {int(result)}")
        return result


class SemTrigger(Trigger):
    """Tracks mutexes held by each thread and fires on other intercepted calls."""

    def __init__(self, settings: Settings | None = None, **kwargs: Any) -> None:
        super().__init__(settings, **kwargs)
        self._local = threading.local()

    def lock_count(self) -> int:
        """Number of mutexes the calling thread currently holds."""
        return getattr(self._local, "count", 0)

    def _set_lock_count(self, value: int) -> None:
        self._local.count = value

    def evaluate(self, function_name: str, *args: Any) -> bool:
        if function_name == "pthread_mutex_lock":
            self._set_lock_count(self.lock_count() + 1)
        elif function_name == "pthread_mutex_unlock":
            held = self.lock_count()
            if held:
                self._set_lock_count(held - 1)
        else:
            # Any other call fires; holding a lock only decides what is logged.
            if self.active() and self.lock_count() > 0:
                self._log(f"Eval fn={function_name}, true")
            return True
        self._log(f"Eval fn={function_name}, false")
        return False