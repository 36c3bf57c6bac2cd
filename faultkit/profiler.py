"""Build return-value profiles of library functions by following their calls."""

from __future__ import annotations

import getopt
import re
import subprocess
import sys
from pathlib import Path
from typing import Iterable, Sequence, TextIO

from .base import c_atoi

PROFILER_EXE = "profiler"
REFERENCE_FILE = "function_references"
DISASSEMBLY_DIR = "disassembly"
PROFILE_DIR = "profiles"
MAGIC_FNPTR_CALL = "function_pointer_call"
MAX_FUNCTION_SIZE = 30720
USAGE = "Usage: profilermgr <function name>"

_DISASSEMBLY_NOISE = re.compile(r"^Disassembly|^/|^$|efi-app-ia32")
_HEX_PREFIX = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]*)")


def _strtol16(text: str) -> int:
    match = _HEX_PREFIX.match(text)
    if not match or not match.group(2):
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


def strip_plt(function: str) -> str:
    """Drop a trailing '@plt' from a symbol that carries no offset."""
    if "+" not in function and "@plt" in function:
        return function[: function.index("@plt")]
    return function


def parse_references(text: str) -> list[tuple[str, str]]:
    """Read (address, function) pairs from 'call <address> <function>' lines."""
    tokens = text.split()
    return [
        (address, name[1:-1])
        for _mnemonic, address, name in zip(*[iter(tokens)] * 3)
    ]


class ProfilerManager:
    """Runs the profiler on a function and merges in the profiles of its callees."""

    def __init__(
        self,
        target_library: str,
        *,
        root: str | Path | None = None,
        profiler: Iterable[str] | None = None,
        objdump: Iterable[str] = ("objdump",),
        stream: TextIO | None = None,
    ) -> None:
        self.target_library = target_library
        self.root = Path(root) if root is not None else Path.cwd()
        self.disassembly_dir = self.root / DISASSEMBLY_DIR
        self.profile_dir = self.root / PROFILE_DIR
        self.profiler = (
            list(profiler) if profiler is not None else [str(self.root / PROFILER_EXE)]
        )
        self.objdump = list(objdump)
        self._stream = stream

    def _log(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write(message + "\n")

    def _disassemble(self, start: int, end: int) -> Path:
        output = self.disassembly_dir / f"{start}.tmp"
        command = [
            *self.objdump,
            "-d",
            "-M",
            "intel",
            f"--start-address={start}",
            f"--stop-address={end}",
            self.target_library,
        ]
        self._log("Executing " + " ".join(command))
        try:
            completed = subprocess.run(
                command, capture_output=True, text=True, errors="replace", check=False
            )
            text = completed.stdout
        except OSError as exc:
            self._log(f"objdump: {exc}")
            text = ""
        self.disassembly_dir.mkdir(parents=True, exist_ok=True)
        with output.open("w", encoding="utf-8") as handle:
            handle.writelines(
                line + "\n"
                for line in text.splitlines()
                if not _DISASSEMBLY_NOISE.search(line)
            )
        return output

    def handle_reference(self, function: str, address: str, profile: str) -> None:
        """Append the profile of a referenced function to `profile`, building it if needed."""
        actual = strip_plt(function)
        dasm_path = self.disassembly_dir / actual
        profile_path = self.profile_dir / actual

        self._log(f"handleReferece to {function}. appending to {profile}")
        if not profile_path.is_file():
            if not dasm_path.is_file():
                self._log(
                    f"WARNING: Disassembly not found for {function} trying to "
                    "disassemble code. Return values set may be incomplete"
                )
                start = _strtol16(address)
                dasm_path = self._disassemble(start, start + MAX_FUNCTION_SIZE)
                actual = f"{start}.tmp"
                profile_path = self.profile_dir / actual
            if dasm_path.is_file():
                self.get_return_values(actual)

        if profile_path.is_file():
            lines = profile_path.read_text(encoding="utf-8", errors="replace").split("\n")
            with open(profile, "a", encoding="utf-8") as out:
                out.writelines(line + "\n" for line in lines[:-1])
        self._log(f"handleReferece to {function}({actual}) - done")

    def get_return_values(self, function: str) -> None:
        """Profile the disassembly of `function` and fold in every function it calls."""
        dasm_path = self.disassembly_dir / function
        profile_path = self.profile_dir / function
        reffile = self.root / f"{REFERENCE_FILE}_{function}"

        self.profile_dir.mkdir(parents=True, exist_ok=True)
        command = [*self.profiler, str(dasm_path), str(reffile)]
        with profile_path.open("wb") as out:
            self._log("Executing " + " ".join(command))
            try:
                subprocess.run(command, stdout=out, check=False)
            except OSError as exc:
                self._log(f"execlp: {exc}")
                self._log("ERROR: profiler could not be executed")
        self._log("Profiler done")

        try:
            text = reffile.read_text(encoding="utf-8", errors="replace")
        except OSError:
            self._log(f"WARNING: reference file {reffile} not found")
            self._log("after profiler done")
            return

        own_number = c_atoi(function)
        for address, reference in parse_references(text):
            self._log(f"{address} {function}")
            if reference == MAGIC_FNPTR_CALL:
                self._log(f"WARNING. fnptr call detected referencing {reference}")
            elif reference == function or (
                own_number != 0 and _strtol16(address) == own_number
            ):
                continue
            else:
                self._log(f"referencing {reference}")
                self.handle_reference(reference, address, str(profile_path))
        reffile.unlink()
        self._log("after profiler done")


def main(argv: Sequence[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        _options, positional = getopt.getopt(args, "rf:t:")
    except getopt.GetoptError as exc:
        opt = exc.opt
        if opt == "f":
            sys.stderr.write("Option -f requires an argument.\n")
        if opt == "t":
            sys.stderr.write("Option -t requires an argument.\n")
        elif opt.isprintable():
            sys.stderr.write(f"Unknown option `-{opt}'.\n")
        else:
            sys.stderr.write(f"Unknown option character `\\x{ord(opt[:1] or ' '):x}'.\n")
        return 1

    if len(positional) >= 2:
        ProfilerManager(positional[1]).get_return_values(positional[0])
    else:
        print(USAGE)
    return 0