import errno
import json

from faultkit.errordiff import (
    FunctionScore,
    compare_tables,
    format_report,
    main,
    normalize_syscall_errors,
    score_function,
)


def test_perfect_match():
    assert score_function("open", [1, 2], [2, 1]) == FunctionScore("open", 2, 0, 0, 100)


def test_both_empty_is_full_accuracy():
    assert score_function("getpid", [], []).accuracy == 100


def test_disjoint_sets():
    score = score_function("read", [1, 2, 3], [7, 8])
    assert score.found == 0
    assert score.missing == 3
    assert score.false_positives == 2
    assert score.accuracy == 0


def test_partial_invariants():
    expected, reported = [1, 2, 3, 4], [2, 3, 9]
    score = score_function("write", expected, reported)
    assert score.found + score.missing == len(set(expected))
    assert score.found + score.false_positives == len(set(reported))
    assert 0 < score.accuracy < 100


def test_duplicates_count_once():
    assert score_function("x", [5, 5], [5, 5, 5]) == score_function("x", [5], [5])


def test_normalize_syscall_errors():
    assert normalize_syscall_errors([-2, -13, -600]) == {2, 13, errno.EINTR}


def test_compare_tables_keeps_expected_order_and_skips_unreported():
    expected = {"b": [1], "a": [2], "c": [3]}
    reported = {"a": [2], "b": [1]}
    scores = compare_tables(expected, reported)
    assert [score.name for score in scores] == ["b", "a"]


def test_format_report_rows_and_average():
    report = format_report([FunctionScore("open", 2, 0, 0, 100)])
    assert report == "|-\n| open || 2 || 0 || 0 || 100%\nAvg(accuracy): 100% over 1 values\n"


def test_format_report_empty():
    assert format_report([]) == "Avg(accuracy): nan% over 0 values\n"


def test_main_stops_at_sentinel(tmp_path, capsys):
    expected = tmp_path / "man.json"
    reported = tmp_path / "prof.json"
    expected.write_text(json.dumps({"read": [4, 12345, 99]}))
    reported.write_text(json.dumps({"read": [4], "close": [9]}))
    assert main([str(expected), str(reported)]) == 0
    out = capsys.readouterr().out
    assert "| read || 1 || 0 || 0 || 100%" in out
    assert out.endswith("over 1 values\n")


def test_main_syscall_mode(tmp_path, capsys):
    expected = tmp_path / "man.json"
    reported = tmp_path / "prof.json"
    expected.write_text(json.dumps({"2": [2, 13, 0, 5]}))
    reported.write_text(json.dumps({"2": [-2, -13]}))
    assert main(["--syscalls", str(expected), str(reported)]) == 0
    out = capsys.readouterr().out
    assert "| 2 || 2 || 0 || 0 || 100%" in out