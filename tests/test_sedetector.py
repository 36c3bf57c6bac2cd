from faultkit.sedetector import (
    MAGIC_FNPTR_CALL,
    ControlFlowGraph,
    is_register,
    read_text,
    walk_return_values,
)


def graph_of(*blocks):
    edges = {i: [i + 1] for i in range(len(blocks) - 1)}
    return ControlFlowGraph(blocks=[list(b) for b in blocks], edges=edges)


def test_successors_lists_edges():
    graph = ControlFlowGraph(blocks=[[], [], []], edges={0: [1, 2]})
    assert graph.successors(0) == [1, 2]
    assert graph.successors(2) == []


def test_is_register():
    assert is_register("eax")
    assert not is_register("DWORD PTR [ebp-4]")
    assert not is_register("[eax]")


def test_read_text_missing(tmp_path):
    assert read_text(str(tmp_path / "nope")) == ""


def test_read_text_terminates_lines(tmp_path):
    path = tmp_path / "f.asm"
    path.write_text("a\nb")
    assert read_text(str(path)) == "a\nb\n"
    path.write_text("a\nb\n")
    assert read_text(str(path)) == "a\nb\n\n"


def test_mov_literal_is_return_value():
    graph = graph_of([], ["mov    eax,0x5", "leave", "ret"])
    assert walk_return_values(graph, 0) == (["0x5 5"], [])


def test_xor_gives_zero():
    graph = graph_of([], ["xor    eax,eax", "ret"])
    values, _ = walk_return_values(graph, 0)
    assert values == ["0x0 0"]


def test_or_all_ones_is_minus_one():
    graph = graph_of([], ["or     eax,0xffffffff", "ret"])
    values, _ = walk_return_values(graph, 0)
    assert values == ["0xffffffff -1"]


def test_value_followed_through_predecessors():
    graph = graph_of([], ["mov    eax,ebx", "ret"], ["mov    ebx,0x7"])
    values, _ = walk_return_values(graph, 0)
    assert values == ["0x7 7"]


def test_call_is_reference_or_value():
    graph = graph_of([], ["call   8048abc <helper>", "ret"])
    assert walk_return_values(graph, 0, references=True) == (
        [],
        ["call   8048abc <helper>"],
    )
    assert walk_return_values(graph, 0) == (["call   8048abc <helper>"], [])


def test_indirect_call_becomes_marker():
    graph = graph_of([], ["call   DWORD PTR [eax+0x4]"])
    _, refs = walk_return_values(graph, 0, references=True)
    assert refs == [MAGIC_FNPTR_CALL]


def test_syscall_interrupt_is_value():
    graph = graph_of([], ["int    0x80"])
    values, _ = walk_return_values(graph, 0, references=True)
    assert values == ["int    0x80"]


def test_cycle_terminates():
    graph = ControlFlowGraph(blocks=[[], ["nop"]], edges={0: [1], 1: [1]})
    assert walk_return_values(graph, 0) == ([], [])


def test_each_branch_reported():
    graph = ControlFlowGraph(
        blocks=[[], ["mov    eax,0x1"], ["mov    eax,0x3"]], edges={0: [1, 2]}
    )
    values, _ = walk_return_values(graph, 0)
    assert sorted(values) == ["0x1 1", "0x3 3"]