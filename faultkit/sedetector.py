"""Walk a control-flow graph backwards to find a function's return values."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field

MAGIC_FNPTR_CALL = "call 00000000 <function_pointer_call>"
RETURN_REGISTER = "eax"
_REGISTER_LINES = ("eax", "ebx", "ecx", "edx", "edi", "esi")
_HEX_LITERAL = re.compile(r"0[xX]([0-9a-fA-F]*)")
_ULONG_MAX = 2**64 - 1


@dataclass
class ControlFlowGraph:
    """Basic blocks of instructions and the adjacency between them."""

    blocks: list[list[str]] = field(default_factory=list)
    edges: dict[int, list[int]] = field(default_factory=dict)

    def successors(self, index: int) -> list[int]:
        """Blocks adjacent to block `index`."""
        return list(self.edges.get(index, ()))


def read_text(path: str) -> str:
    """Read a file with every line newline-terminated; '' if it cannot be read."""
    try:
        with open(path, encoding="utf-8", errors="replace", newline="") as handle:
            contents = handle.read()
    except OSError:
        return ""
    return "".join(line + "\n" for line in contents.split("\n"))


def is_register(target: str) -> bool:
    """True unless the location is a memory operand."""
    return not target.startswith(("D", "["))


def _mnemonic(line: str) -> str:
    position = line.find(" ", 1)
    return line if position < 0 else line[:position]


def _operands(line: str, mnemonic: str) -> tuple[str, str] | None:
    dest, sep, src = line[len(mnemonic):].lstrip(" ").partition(",")
    return (dest, src) if sep else None


def _to_int32(literal: str) -> int:
    match = _HEX_LITERAL.match(literal)
    digits = match.group(1) if match else ""
    value = min(int(digits, 16), _ULONG_MAX) if digits else 0
    value &= 0xFFFFFFFF
    return value - 2**32 if value >= 2**31 else value


def walk_return_values(
    graph: ControlFlowGraph, start: int, references: bool = False
) -> tuple[list[str], list[str]]:
    """Trace where the return register gets its value, breadth first.

    Returns the return values found and, when `references` is true, the call
    instructions whose results are returned (function-pointer calls are
    collapsed into one marker line). Without `references` such calls count as
    return values themselves.
    """
    values: list[str] = []
    refs: list[str] = []
    queue = deque((succ, RETURN_REGISTER) for succ in graph.successors(start))
    visited: set[tuple[int, str]] = set()

    while queue:
        block_id, target = queue.popleft()
        returned_by_call = False
        for line in reversed(graph.blocks[block_id]):
            mnemonic = _mnemonic(line)
            if mnemonic == "mov":
                operands = _operands(line, mnemonic)
                if operands and operands[0] == target:
                    target = operands[1]
            elif is_register(target):
                if mnemonic == "or":
                    operands = _operands(line, mnemonic)
                    if operands and operands == (target, "0xffffffff"):
                        target = "0xffffffff"
                elif mnemonic == "xor":
                    operands = _operands(line, mnemonic)
                    if operands and operands == (target, target):
                        target = "0x0"
                elif target == RETURN_REGISTER:
                    if mnemonic == "call":
                        if references:
                            if "DWORD PTR" in line or line in _REGISTER_LINES:
                                refs.append(MAGIC_FNPTR_CALL)
                            else:
                                refs.append(line)
                        else:
                            values.append(line)
                        returned_by_call = True
                        break
                    if mnemonic == "int" and "0x80" in line:
                        values.append(line)
                        returned_by_call = True
                        break

        if len(target) > 2 and target.startswith("0x"):
            values.append(f"{target} {_to_int32(target)}")
        elif not returned_by_call:
            for succ in graph.successors(block_id):
                element = (succ, target)
                if element not in visited:
                    visited.add(element)
                    queue.append(element)
    return values, refs