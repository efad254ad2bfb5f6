"""Tests for the FastRack pipeline engine."""

from unittest.mock import patch

import pytest
from starlette.responses import Response

from fast_rack.src.core.exceptions.exceptions import (
    AppException,
    AppExceptionCode,
    InvalidMiddlewareException,
    UnhandledOutcomeException,
)
from fast_rack.src.core.middleware import Middleware
from fast_rack.src.core.outcome import CONTINUE, RETRY, Synthetic
from fast_rack.src.core.rack import FastRack


class Recorder(Middleware):
    """Middleware that records every hook call into a shared log."""

    def __init__(self, name, calls, request_outcomes=None, response_outcomes=None):
        self.name = name
        self.calls = calls
        self.request_outcomes = list(request_outcomes or [])
        self.response_outcomes = list(response_outcomes or [])

    def on_request(self, request):
        self.calls.append(("request", self.name))
        if self.request_outcomes:
            return self.request_outcomes.pop(0)
        return CONTINUE

    def on_response(self, response):
        self.calls.append(("response", self.name))
        if self.response_outcomes:
            return self.response_outcomes.pop(0)
        return CONTINUE


class AlwaysRetry(Middleware):
    def __init__(self):
        self.request_calls = 0

    def on_request(self, request):
        self.request_calls += 1
        return RETRY


class RetryRequest(Middleware):
    """Retries from the response phase while ``remaining`` is positive."""

    def __init__(self, remaining):
        self.remaining = remaining

    def on_response(self, response):
        if self.remaining > 0:
            self.remaining -= 1
            return RETRY
        return CONTINUE


class TestConstruction:
    """Test cases for building a rack."""

    def test_new_rack_is_empty(self):
        rack = FastRack()

        assert len(rack) == 0
        assert rack.middleware == ()
        assert rack.max_retries == 3
        assert rack.retry_header == "X-Rack-Retries"

    def test_add_appends_in_order_without_deduplication(self):
        rack = FastRack()
        first = Middleware()
        second = Middleware()

        rack.add(first)
        rack.add(second)
        rack.add(first)

        assert rack.middleware == (first, second, first)
        assert len(rack) == 3

    def test_add_rejects_non_middleware(self):
        rack = FastRack()

        with pytest.raises(InvalidMiddlewareException) as exc_info:
            rack.add(object())

        assert exc_info.value.error_code == AppExceptionCode.INVALID_MIDDLEWARE_ERROR.error_code
        assert len(rack) == 0

    @pytest.mark.parametrize("max_retries", [-1, "3", 1.5, True])
    def test_invalid_max_retries_rejected(self, max_retries):
        with pytest.raises(AppException) as exc_info:
            FastRack(max_retries=max_retries)

        assert (
            exc_info.value.error_code
            == AppExceptionCode.CONFIGURATION_VALIDATION_ERROR.error_code
        )

    def test_max_retries_defaults_to_settings(self):
        with patch("fast_rack.src.core.rack.settings") as mock_settings:
            mock_settings.MAX_RETRIES = 7
            mock_settings.RETRY_HEADER = "X-Custom-Retries"

            rack = FastRack()

        assert rack.max_retries == 7
        assert rack.retry_header == "X-Custom-Retries"


class TestTraversal:
    """Test cases for the two-phase traversal order."""

    def test_request_forward_response_reverse(self):
        calls = []
        rack = FastRack()
        for name in ("a", "b", "c"):
            rack.add(Recorder(name, calls))

        rack.run({})

        assert calls == [
            ("request", "a"),
            ("request", "b"),
            ("request", "c"),
            ("response", "c"),
            ("response", "b"),
            ("response", "a"),
        ]

    def test_full_pass_returns_default_response(self):
        calls = []
        rack = FastRack()
        rack.add(Recorder("only", calls))

        response = rack.run({})

        assert calls == [("request", "only"), ("response", "only")]
        assert response.status_code == 200
        assert response.body == b""
        assert "X-Rack-Retries" not in response.headers

    def test_empty_rack_returns_default_response(self):
        response = FastRack().run({})

        assert isinstance(response, Response)
        assert response.status_code == 200

    def test_request_is_passed_by_reference(self):
        class Tagger(Middleware):
            def on_request(self, request):
                request["seen"] = request.get("seen", 0) + 1
                return CONTINUE

        request = {}
        rack = FastRack()
        rack.add(Tagger())
        rack.add(Tagger())

        rack.run(request)

        assert request == {"seen": 2}

    def test_response_mutations_are_returned(self):
        class StatusSetter(Middleware):
            def on_response(self, response):
                response.status_code = 503
                response.headers["x-upstream"] = "down"
                return CONTINUE

        rack = FastRack()
        rack.add(StatusSetter())

        response = rack.run({})

        assert response.status_code == 503
        assert response.headers["x-upstream"] == "down"

    def test_custom_response_factory(self):
        class FakeResponse:
            def __init__(self):
                self.headers = {}

        rack = FastRack(response_factory=FakeResponse)
        rack.add(RetryRequest(1))

        response = rack.run({})

        assert isinstance(response, FakeResponse)
        assert response.headers == {"X-Rack-Retries": "1"}


class TestSyntheticResponse:
    """Test cases for request-phase short-circuits."""

    def test_synthetic_stops_request_and_response_phase(self):
        calls = []
        synthetic = Response(content="foo", status_code=418)
        rack = FastRack()
        rack.add(Recorder("a", calls))
        rack.add(Recorder("b", calls, request_outcomes=[Synthetic(synthetic)]))
        rack.add(Recorder("c", calls))

        response = rack.run({})

        assert response is synthetic
        assert calls == [("request", "a"), ("request", "b")]

    def test_synthetic_scenario(self):
        class SyntheticFoo(Middleware):
            def on_request(self, request):
                return Synthetic(Response(content="foo", status_code=418))

        rack = FastRack()
        rack.add(SyntheticFoo())

        response = rack.run({})

        assert response.status_code == 418
        assert response.body == b"foo"
        assert "X-Rack-Retries" not in response.headers

    def test_synthetic_after_retry_is_annotated(self):
        synthetic = Response(content="late", status_code=202)
        rack = FastRack()
        rack.add(Recorder("a", [], request_outcomes=[RETRY, Synthetic(synthetic)]))

        response = rack.run({})

        assert response is synthetic
        assert response.headers["X-Rack-Retries"] == "1"


class TestRetry:
    """Test cases for bounded retries."""

    def test_always_retry_is_bounded(self):
        always = AlwaysRetry()
        rack = FastRack()
        rack.add(always)

        response = rack.run({})

        assert always.request_calls == 3
        assert response.headers["X-Rack-Retries"] == "3"

    def test_retry_exhaustion_skips_response_phase(self):
        calls = []
        rack = FastRack()
        rack.add(Recorder("a", calls, request_outcomes=[RETRY, RETRY, RETRY]))
        rack.add(Recorder("b", calls))

        response = rack.run({})

        assert ("response", "a") not in calls
        assert ("response", "b") not in calls
        assert ("request", "b") not in calls
        assert response.status_code == 200

    def test_response_phase_retry_scenario(self):
        rack = FastRack()
        rack.add(RetryRequest(2))

        response = rack.run({})

        assert response.status_code == 200
        assert response.headers["X-Rack-Retries"] == "2"

    def test_retry_restarts_entire_pipeline(self):
        calls = []
        rack = FastRack()
        rack.add(Recorder("a", calls))
        rack.add(Recorder("b", calls, response_outcomes=[RETRY]))
        rack.add(Recorder("c", calls))

        response = rack.run({})

        assert calls == [
            ("request", "a"),
            ("request", "b"),
            ("request", "c"),
            ("response", "c"),
            ("response", "b"),
            ("request", "a"),
            ("request", "b"),
            ("request", "c"),
            ("response", "c"),
            ("response", "b"),
            ("response", "a"),
        ]
        assert response.headers["X-Rack-Retries"] == "1"

    def test_request_mutations_persist_across_retries(self):
        class Counter(Middleware):
            def on_request(self, request):
                request["attempts"] = request.get("attempts", 0) + 1
                return RETRY if request["attempts"] < 2 else CONTINUE

        request = {}
        rack = FastRack()
        rack.add(Counter())

        response = rack.run(request)

        assert request["attempts"] == 2
        assert response.headers["X-Rack-Retries"] == "1"

    def test_response_phase_retry_exhaustion_keeps_mutated_response(self):
        class Degrade(Middleware):
            def on_response(self, response):
                response.status_code = 502
                return RETRY

        rack = FastRack(max_retries=2)
        rack.add(Degrade())

        response = rack.run({})

        assert response.status_code == 502
        assert response.headers["X-Rack-Retries"] == "2"

    def test_custom_max_retries_and_header(self):
        always = AlwaysRetry()
        rack = FastRack(max_retries=5, retry_header="Fastly-Retries")
        rack.add(always)

        response = rack.run({})

        assert always.request_calls == 5
        assert response.headers["Fastly-Retries"] == "5"

    def test_zero_max_retries_stops_on_first_retry(self):
        always = AlwaysRetry()
        rack = FastRack(max_retries=0)
        rack.add(always)

        response = rack.run({})

        assert always.request_calls == 1
        assert response.headers["X-Rack-Retries"] == "1"

    def test_exhaustion_is_logged(self):
        rack = FastRack()
        rack.add(AlwaysRetry())

        with patch("fast_rack.src.core.rack.logger") as mock_logger:
            rack.run({})

        mock_logger.warning.assert_called_once()


class TestUnhandledOutcome:
    """Test cases for outcomes a phase cannot honour."""

    def test_synthetic_from_response_phase_is_fatal(self):
        class BadResponse(Middleware):
            def on_response(self, response):
                return Synthetic(Response(status_code=500))

        bad = BadResponse()
        rack = FastRack()
        rack.add(bad)

        with pytest.raises(UnhandledOutcomeException) as exc_info:
            rack.run({})

        assert exc_info.value.middleware is bad
        assert exc_info.value.phase == "response"
        assert exc_info.value.response_code == 500
        assert exc_info.value.error_code == "E_006"

    def test_non_outcome_from_request_phase_is_fatal(self):
        class ReturnsNone(Middleware):
            def on_request(self, request):
                return None

        rack = FastRack()
        rack.add(ReturnsNone())

        with pytest.raises(UnhandledOutcomeException) as exc_info:
            rack.run({})

        assert exc_info.value.phase == "request"
        assert exc_info.value.outcome is None

    def test_fatal_outcome_is_not_retried(self):
        class BadResponse(Middleware):
            def __init__(self):
                self.calls = 0

            def on_response(self, response):
                self.calls += 1
                return "retry"

        bad = BadResponse()
        rack = FastRack()
        rack.add(bad)

        with pytest.raises(UnhandledOutcomeException):
            rack.run({})

        assert bad.calls == 1

    def test_middleware_exceptions_propagate(self):
        class Boom(Middleware):
            def on_request(self, request):
                raise RuntimeError("boom")

        rack = FastRack()
        rack.add(Boom())

        with pytest.raises(RuntimeError, match="boom"):
            rack.run({})


class TestIndependentRuns:
    """Test cases for running the same rack more than once."""

    def test_pure_middleware_runs_do_not_interfere(self):
        class PathEcho(Middleware):
            def on_request(self, request):
                return Synthetic(Response(content=request["path"]))

        rack = FastRack()
        rack.add(PathEcho())

        first = rack.run({"path": "/one"})
        second = rack.run({"path": "/two"})

        assert first.body == b"/one"
        assert second.body == b"/two"
        assert first is not second

    def test_retry_counter_resets_per_run(self):
        rack = FastRack()
        rack.add(AlwaysRetry())

        first = rack.run({})
        second = rack.run({})

        assert first.headers["X-Rack-Retries"] == "3"
        assert second.headers["X-Rack-Retries"] == "3"
