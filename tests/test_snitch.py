import logging

import pytest

from docfill.utils.snitch import get_trace_id, start_trace, traced


@traced
def succeed(value):
    return get_trace_id(), value


@traced
def crash():
    raise RuntimeError("boom")


def test_trace_id_is_shared_by_nested_calls(caplog):
    caplog.set_level(logging.INFO, logger="docfill.trace")
    tid = start_trace("TEST-TRACE-001")

    assert succeed(1) == (tid, 1)
    assert "[TEST-TRACE-001] >> ENTER: succeed" in caplog.text
    assert "[TEST-TRACE-001] OK EXIT:  succeed" in caplog.text


def test_crash_is_logged_and_reraised(caplog):
    start_trace("TEST-TRACE-002")
    with pytest.raises(RuntimeError):
        crash()
    assert "!! CRASH: crash | boom" in caplog.text
