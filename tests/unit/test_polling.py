import threading

import pytest

from providers.base import JobFailed, PollCancelled, PollTimeout
from providers.polling import poll_job


def test_returns_first_ready_result():
    answers = iter([None, None, "done"])
    calls = []

    def check():
        calls.append(1)
        return next(answers)

    assert poll_job(check, max_polls=5, interval_s=0) == "done"
    assert len(calls) == 3


def test_times_out_after_max_polls():
    calls = []

    def check():
        calls.append(1)
        return None

    with pytest.raises(PollTimeout):
        poll_job(check, max_polls=3, interval_s=0, backend="did")
    assert len(calls) == 3


def test_job_failure_propagates():
    def check():
        raise JobFailed("vendor said no", backend="heygen")

    with pytest.raises(JobFailed):
        poll_job(check, max_polls=3, interval_s=0)


def test_cancel_before_first_attempt():
    cancel = threading.Event()
    cancel.set()
    calls = []
    with pytest.raises(PollCancelled):
        poll_job(lambda: calls.append(1), max_polls=3, interval_s=0, cancel=cancel)
    assert calls == []


def test_cancel_interrupts_wait():
    cancel = threading.Event()

    def check():
        cancel.set()
        return None

    with pytest.raises(PollCancelled):
        poll_job(check, max_polls=10, interval_s=30, cancel=cancel)


def test_backoff_grows_the_wait():
    delays = []

    class RecordingEvent(threading.Event):
        def wait(self, timeout=None):
            delays.append(timeout)
            return False

    with pytest.raises(PollTimeout):
        poll_job(lambda: None, max_polls=4, interval_s=1.0, backoff=2.0, max_interval_s=3.0, cancel=RecordingEvent())
    assert delays == [1.0, 2.0, 3.0]
