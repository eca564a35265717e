from pydantic import BaseModel

from contracts.alert import AlertEvent, HardFailure
from contracts.probe import ProbeDefinition
from contracts.probe_result import ProbeResult


class RequestInfo(BaseModel):
    """
    Record written to databases for a successful probe.
    """

    id: int
    url: str
    request_type: str
    response_code: int
    response_time_ms: int
    expected_response_time_ms: int

    @classmethod
    def from_result(cls, definition: ProbeDefinition, result: ProbeResult) -> "RequestInfo":
        return cls(
            id=definition.id,
            url=definition.url,
            request_type=definition.method,
            response_code=result.outcome.status_code,
            response_time_ms=result.outcome.latency_ms,
            expected_response_time_ms=definition.expected_latency_ms,
        )


class ErrorInfo(BaseModel):
    """
    Record written to databases for a hard-failure alert.
    """

    id: int
    url: str
    request_type: str
    response_code: int = 0
    response_body: str = ""
    reason: str
    other_info: str = ""

    @classmethod
    def from_alert(cls, alert: AlertEvent) -> "ErrorInfo":
        detail: HardFailure = alert.detail
        return cls(
            id=alert.probe_id,
            url=alert.url,
            request_type=alert.request_type,
            response_code=detail.response_code,
            response_body=detail.response_body,
            reason=detail.reason,
            other_info=detail.other_info,
        )


# Canned records used to smoke-test a database at registration time
TEST_REQUEST_INFO = RequestInfo(
    id=0,
    url="http://test.com",
    request_type="GET",
    response_code=0,
    response_time_ms=0,
    expected_response_time_ms=0,
)

TEST_ERROR_INFO = ErrorInfo(
    id=0,
    url="http://test.com",
    request_type="GET",
    response_code=0,
    response_body="test response",
    reason="test error",
    other_info="test other info",
)
