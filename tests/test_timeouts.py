"""Tests for bounded calls."""

import os
import subprocess
import sys
import threading
import time

import pytest

from reviewinsight.core.exceptions import OperationTimeout
from reviewinsight.core.timeouts import (
    COMPLETED, FAILED, TIMED_OUT, BoundedWorker, run_with_timeout, try_with_timeout,
)

SRC_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")


def test_returns_value_before_deadline():
    assert run_with_timeout(lambda x, y: x + y, 1.0, 2, y=3) == 5


def test_raises_operation_timeout():
    start = time.monotonic()
    with pytest.raises(OperationTimeout) as excinfo:
        run_with_timeout(time.sleep, 0.05, 1.0, name="slow call")
    assert time.monotonic() - start < 0.9
    assert "slow call timed out" in str(excinfo.value)


def test_errors_propagate_unchanged():
    def boom():
        raise KeyError("nope")

    with pytest.raises(KeyError):
        run_with_timeout(boom, 1.0)


def test_try_with_timeout_reports_outcome():
    assert try_with_timeout(lambda: 42, 1.0).status == COMPLETED
    assert try_with_timeout(lambda: 42, 1.0).value == 42

    timed_out = try_with_timeout(time.sleep, 0.05, 1.0)
    assert timed_out.status == TIMED_OUT
    assert not timed_out.ok
    assert "timed out" in timed_out.reason

    failed = try_with_timeout(lambda: 1 / 0, 1.0)
    assert failed.status == FAILED
    assert isinstance(failed.error, ZeroDivisionError)


def test_shared_worker_runs_calls_one_at_a_time():
    worker = BoundedWorker("test")
    started = []

    def record(tag, delay):
        started.append((tag, time.monotonic()))
        time.sleep(delay)
        return tag

    with pytest.raises(OperationTimeout):
        run_with_timeout(record, 0.05, "slow", 0.4, worker=worker)
    # Queued behind the abandoned call, so it never starts before its deadline
    with pytest.raises(OperationTimeout):
        run_with_timeout(record, 0.05, "queued", 0.0, worker=worker)
    assert [tag for tag, _ in started] == ["slow"]

    assert run_with_timeout(record, 2.0, "next", 0.0, worker=worker) == "next"
    slow_start = started[0][1]
    next_start = started[1][1]
    assert next_start - slow_start >= 0.4


def test_abandoned_call_runs_on_daemon_thread():
    assert try_with_timeout(time.sleep, 0.05, 0.5, name="sleeper").status == TIMED_OUT
    workers = [t for t in threading.enumerate() if t.name == "bounded-sleeper"]
    assert workers
    assert all(t.daemon for t in workers)


def test_abandoned_call_does_not_delay_interpreter_exit():
    script = (
        "import time\n"
        "from reviewinsight.core.timeouts import try_with_timeout\n"
        "print(try_with_timeout(time.sleep, 0.1, 30.0).status)\n"
    )
    env = dict(os.environ)
    env["PYTHONPATH"] = SRC_DIR + os.pathsep + env.get("PYTHONPATH", "")
    started = time.monotonic()
    result = subprocess.run([sys.executable, "-c", script], capture_output=True, text=True, env=env, timeout=60)
    elapsed = time.monotonic() - started
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == TIMED_OUT
    assert elapsed < 20.0
