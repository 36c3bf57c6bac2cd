import io
import threading

import pytest

from faultkit.base import Settings
from faultkit.inspect_args import (
    ArgType,
    CompareMode,
    ExamineArgs,
    ReadInspector,
    SemTrigger,
)


def _examine(xml, **kwargs):
    trigger = ExamineArgs(**kwargs)
    trigger.configure(xml)
    return trigger


def test_configured_enum_values_match_format():
    int_trigger = _examine(
        "<args><argType>char</argType><argCompare>and</argCompare></args>"
    )
    assert int_trigger.arg_type is ArgType.INT
    assert int_trigger.arg_type == 1
    assert int_trigger.arg_compare == 51

    string_trigger = _examine(
        "<args><argType>string</argType><argCompare>strcmp</argCompare></args>"
    )
    assert string_trigger.arg_type == 2
    assert string_trigger.arg_compare is CompareMode.STRCMP
    assert string_trigger.arg_compare == 53


def test_configure_reads_all_fields():
    trigger = _examine(
        "<args><skip>int</skip><skip>char</skip><argType>string</argType>"
        "<argCompare>strstr</argCompare>"
        "<argBaseArrayChooser>1</argBaseArrayChooser></args>"
    )
    assert trigger.skip_types == [ArgType.INT, ArgType.INT]
    assert trigger.arg_type is ArgType.STRING
    assert trigger.arg_compare is CompareMode.STRSTR
    assert trigger.table_index == 1


def test_strstr_matches_substring_after_skipped_args():
    trigger = _examine(
        "<args><skip>int</skip><argType>string</argType>"
        "<argCompare>strstr</argCompare>"
        "<argBaseArrayChooser>1</argBaseArrayChooser></args>",
        string_tables=[["unused"], ["tmp", "log"]],
    )
    assert trigger.evaluate("open", 3, "/var/tmp/file") is True
    assert trigger.evaluate("open", 3, "/etc/hosts") is False


def test_strcmp_needs_exact_match():
    trigger = _examine(
        "<args><argType>string</argType><argCompare>strcmp</argCompare>"
        "<argBaseArrayChooser>0</argBaseArrayChooser></args>",
        string_tables=[["/data/a"]],
    )
    assert trigger.evaluate("unlink", "/data/a") is True
    assert trigger.evaluate("unlink", "/data/ab") is False


def test_int_equal_and_bitwise_and():
    equal = _examine(
        "<args><argType>int</argType><argCompare>equal</argCompare>"
        "<argBaseArrayChooser>0</argBaseArrayChooser></args>",
        int_tables=[[5, 7]],
    )
    assert equal.evaluate("close", 7) is True
    assert equal.evaluate("close", 6) is False

    masked = _examine(
        "<args><skip>string</skip><argType>char</argType><argCompare>and</argCompare>"
        "<argBaseArrayChooser>0</argBaseArrayChooser></args>",
        int_tables=[[4]],
    )
    assert masked.evaluate("open", "/x", 6) is True
    assert masked.evaluate("open", "/x", 3) is False


def test_inactive_trigger_never_fires():
    settings = Settings(enabled=False)
    trigger = _examine(
        "<args><argType>int</argType><argCompare>equal</argCompare></args>",
        settings=settings,
        int_tables=[[1]],
    )
    assert trigger.evaluate("close", 1) is False


def test_unknown_type_and_missing_config_are_reported():
    stream = io.StringIO()
    trigger = _examine("<args><argType>float</argType></args>", stream=stream)
    output = stream.getvalue()
    assert "BUMMER 2, what is this type: float" in output
    assert "BUMMER, we are not properly configured!" in output
    assert trigger.evaluate("f", 1.0) is False


def test_verbose_log_line():
    stream = io.StringIO()
    trigger = _examine(
        "<args><argType>int</argType><argCompare>equal</argCompare></args>",
        int_tables=[[9]],
        verbose=True,
        stream=stream,
    )
    trigger.evaluate("write", 9)
    assert "ExamineArgs::Eval fn=write, 1\r\n" in stream.getvalue()


@pytest.mark.parametrize(
    "fd, size, expected",
    [(0, 1024, True), (1, 1024, False), (0, 512, False)],
)
def test_read_inspector(fd, size, expected):
    assert ReadInspector().evaluate("read", fd, None, size) is expected


def test_read_inspector_disabled():
    assert ReadInspector(enabled=False).evaluate("read", 0, None, 1024) is False


def test_sem_trigger_counts_locks():
    trigger = SemTrigger()
    assert trigger.evaluate("pthread_mutex_lock") is False
    assert trigger.evaluate("pthread_mutex_lock") is False
    assert trigger.lock_count() == 2
    assert trigger.evaluate("pthread_mutex_unlock") is False
    assert trigger.lock_count() == 1


def test_sem_trigger_count_never_negative():
    trigger = SemTrigger()
    trigger.evaluate("pthread_mutex_unlock")
    assert trigger.lock_count() == 0


def test_sem_trigger_fires_on_other_calls():
    trigger = SemTrigger()
    trigger.evaluate("pthread_mutex_lock")
    assert trigger.evaluate("write") is True
    trigger.evaluate("pthread_mutex_unlock")
    assert trigger.evaluate("write") is True


def test_sem_trigger_logs_true_only_under_lock():
    stream = io.StringIO()
    trigger = SemTrigger(verbose=True, stream=stream)
    trigger.evaluate("write")
    assert "true" not in stream.getvalue()
    trigger.evaluate("pthread_mutex_lock")
    trigger.evaluate("write")
    assert "SemTrigger::Eval fn=write, true\r\n" in stream.getvalue()


def test_sem_trigger_counts_are_per_thread():
    trigger = SemTrigger()
    trigger.evaluate("pthread_mutex_lock")
    seen = []
    worker = threading.Thread(target=lambda: seen.append(trigger.lock_count()))
    worker.start()
    worker.join()
    assert seen == [0]
    assert trigger.lock_count() == 1