import pytest

from filehost_api.utils.decorators import log_execution_time, retry


def make_flaky(failures):
    """A callable that raises KeyError on its first ``failures`` calls"""
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) <= failures:
            raise KeyError("transient")
        return "ok"

    return flaky, calls


def test_retry_succeeds_after_transient_failures():
    flaky, calls = make_flaky(failures=2)
    wrapped = retry(max_attempts=3, delay=0, exceptions=(KeyError,))(flaky)
    assert wrapped() == "ok"
    assert len(calls) == 3


def test_retry_reraises_last_error():
    flaky, calls = make_flaky(failures=10)
    wrapped = retry(max_attempts=4, delay=0, exceptions=(KeyError,))(flaky)
    with pytest.raises(KeyError):
        wrapped()
    assert len(calls) == 4


def test_retry_does_not_catch_other_exceptions():
    calls = []

    @retry(max_attempts=5, delay=0, exceptions=(KeyError,))
    def boom():
        calls.append(1)
        raise ValueError("not retried")

    with pytest.raises(ValueError):
        boom()
    assert len(calls) == 1


def test_retry_requires_an_attempt():
    with pytest.raises(ValueError):
        retry(max_attempts=0)


def test_log_execution_time_keeps_result_and_name(caplog):
    @log_execution_time
    def add(a, b):
        return a + b

    with caplog.at_level("INFO"):
        assert add(1, 2) == 3
    assert add.__name__ == "add"
    assert "add completed in" in caplog.text


def test_retry_wraps_callable_objects():
    class Counter:
        def __init__(self):
            self.calls = 0

        def __call__(self):
            self.calls += 1
            if self.calls < 2:
                raise KeyError("transient")
            return self.calls

    counter = Counter()
    wrapped = retry(max_attempts=2, delay=0, exceptions=(KeyError,))(counter)
    assert wrapped() == 2
