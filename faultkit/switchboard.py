"""Switch-panel and random fault injection in front of file removal."""

from __future__ import annotations

import errno
import os
import random
import sys
import time
from dataclasses import dataclass
from typing import Callable, TextIO

SWITCHPANEL_SIZE = 128
EREMOTE = getattr(errno, "EREMOTE", 66)

UNLINK_NAME = "unlink"
UNLINK_SWITCHPANEL_INDEX = 42
UNLINK_RANDOM_PERCENT = 50


@dataclass
class RandomInstance:
    """A named random trigger that fires `percent` percent of the time."""

    name: str
    percent: int


@dataclass
class SwitchPanelInstance:
    """A named trigger that follows one slot of the switch panel."""

    name: str
    index: int


class FaultInjector:
    """Holds the switches and trigger instances that guard intercepted calls."""

    def __init__(
        self,
        *,
        real_unlink: Callable[[str], None] = os.unlink,
        stream: TextIO | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.enabled = True
        self.verbose = True

        self.random_enabled = True
        self.random_disabled_trigger = True
        self.random_verbose = False
        self.random_seed = 0
        self.random_reseed = False

        self.switchpanel_enabled = True
        self.switchpanel_disabled_trigger = True
        self.switchpanel_verbose = False
        self.switchpanel = [0] * SWITCHPANEL_SIZE
        self.switchpanel_default = 1

        self.unlink_verbose = False
        self.unlink_fake_errno = EREMOTE
        self.unlink_fake_return = -1

        self._real_unlink = real_unlink
        self._stream = stream
        self._clock = clock
        self._rng = random.Random()
        self._initialised = False
        self._unlink_switchpanel: SwitchPanelInstance | None = None
        self._unlink_random: RandomInstance | None = None

    def _write(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write(f"{message}\r\n")

    def _init_once(self) -> None:
        if self._initialised:
            return
        if not self.random_seed:
            self.random_seed = int(self._clock())
        self._rng.seed(self.random_seed)
        self.switchpanel = [self.switchpanel_default] * SWITCHPANEL_SIZE
        self._initialised = True

    def new_random(self, name: str, percent: int) -> RandomInstance:
        """Create a random trigger, seeding the generator on first use."""
        self._init_once()
        return RandomInstance(name, percent)

    def new_switchpanel(self, name: str, index: int) -> SwitchPanelInstance:
        """Create a switch-panel trigger, filling the panel on first use."""
        self._init_once()
        return SwitchPanelInstance(name, index)

    def trigger_random(self, instance: RandomInstance, intercept_name: str) -> bool:
        """Decide by chance whether the intercepted call fails."""
        log = self.verbose or self.random_verbose
        if not self.random_enabled:
            result = bool(self.random_disabled_trigger)
            if log:
                self._write(f"trigger_random: not enabled, trigger={int(result)}")
            return result
        if self.random_reseed:
            self._rng.seed(self.random_seed)
            self.random_reseed = False
        result = self._rng.randrange(100) < instance.percent
        if log:
            self._write(
                f"trigger_random: name={instance.name} intercept={intercept_name} "
                f"trigger={int(result)}"
            )
        return result

    def trigger_switchpanel(
        self, instance: SwitchPanelInstance, intercept_name: str
    ) -> bool:
        """Decide by the instance's switch-panel slot whether the call fails."""
        log = self.verbose or self.switchpanel_verbose
        if not self.switchpanel_enabled:
            result = bool(self.switchpanel_disabled_trigger)
            if log:
                self._write(f"trigger_switchpanel: not enabled, trigger={int(result)}")
            return result
        result = bool(self.switchpanel[instance.index])
        if log:
            self._write(
                f"trigger_switchpanel: name={instance.name} intercept={intercept_name} "
                f"trigger={int(result)}"
            )
        return result

    def _log_unlink(self, result: int) -> None:
        if self.verbose or self.unlink_verbose:
            self._write(f"intercept: {UNLINK_NAME}: return={result}")

    def unlink(self, path: str) -> None:
        """Remove `path`, or raise a fake OSError when the triggers fire."""
        if self.enabled:
            if self._unlink_switchpanel is None:
                self._unlink_switchpanel = self.new_switchpanel(
                    f"switchpanel_{UNLINK_SWITCHPANEL_INDEX}", UNLINK_SWITCHPANEL_INDEX
                )
            if self._unlink_random is None:
                self._unlink_random = self.new_random(
                    f"random_{UNLINK_RANDOM_PERCENT}", UNLINK_RANDOM_PERCENT
                )
            trigger = self.trigger_switchpanel(
                self._unlink_switchpanel, UNLINK_NAME
            ) and self.trigger_random(self._unlink_random, UNLINK_NAME)
        else:
            trigger = False

        if trigger:
            self._log_unlink(self.unlink_fake_return)
            raise OSError(
                self.unlink_fake_errno, os.strerror(self.unlink_fake_errno), path
            )
        try:
            self._real_unlink(path)
        except OSError:
            self._log_unlink(-1)
            raise
        self._log_unlink(0)