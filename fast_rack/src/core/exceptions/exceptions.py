from __future__ import annotations

from enum import Enum

from starlette.status import HTTP_400_BAD_REQUEST, HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR


class AppExceptionCode(Enum):
    """Defines custom App Exception codes for this service, associated with HTTP Status codes."""
    BAD_REQUEST_ERROR = (HTTP_400_BAD_REQUEST, "Bad Request", "E_001")
    NOT_FOUND_ERROR = (HTTP_404_NOT_FOUND, "Not Found", "E_002")
    INTERNAL_SERVER_ERROR = (HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "E_003")
    CONFIGURATION_VALIDATION_ERROR = (HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "E_004")
    INVALID_MIDDLEWARE_ERROR = (HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "E_005")
    UNHANDLED_OUTCOME_ERROR = (HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", "E_006")

    def __init__(self, response_code: int, message: str, error_code: str):
        self._response_code = response_code
        self._message = message
        self._error_code = error_code

    @property
    def response_code(self):
        return self._response_code

    @property
    def message(self):
        return self._message

    @property
    def error_code(self):
        return self._error_code

    def __str__(self):
        return f"response_code={self.response_code}, message={self.message}, error_code={self.error_code}"


class AppException(Exception):
    """Base exception for fast-rack"""
    def __init__(self, detail_message: str, app_exception_code: AppExceptionCode = AppExceptionCode.INTERNAL_SERVER_ERROR):
        self._detail_message = detail_message
        self._app_exception_code = app_exception_code
        super().__init__(detail_message)

    @property
    def detail_message(self):
        return self._detail_message

    @property
    def app_exception_code(self):
        return self._app_exception_code

    @property
    def response_code(self):
        return self._app_exception_code.response_code

    @property
    def message(self):
        return self._app_exception_code.message

    @property
    def error_code(self):
        return self._app_exception_code.error_code

    def __str__(self):
        return f"response_code={self.response_code}, message={self.message}, detail_message={self.detail_message}, error_code={self.error_code}"


class InvalidMiddlewareException(AppException):
    """Raised when something that is not a Middleware is registered on a rack"""
    def __init__(self, detail_message: str):
        super().__init__(detail_message, AppExceptionCode.INVALID_MIDDLEWARE_ERROR)


class UnhandledOutcomeException(AppException):
    """Raised when a middleware hook returns an outcome the current phase cannot honour.

    Covers ``Synthetic`` (or any non-outcome value) from ``on_response`` and
    non-outcome values from ``on_request``. Always fatal to the run.
    """
    def __init__(self, middleware: object, phase: str, outcome: object):
        self._middleware = middleware
        self._phase = phase
        self._outcome = outcome
        super().__init__(
            f"{type(middleware).__name__} returned unhandled outcome {outcome!r} from {phase} phase",
            AppExceptionCode.UNHANDLED_OUTCOME_ERROR,
        )

    @property
    def middleware(self):
        return self._middleware

    @property
    def phase(self):
        return self._phase

    @property
    def outcome(self):
        return self._outcome
