import time
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class FailureReason(str, Enum):
    REQUEST_BUILD = "RequestBuildError"
    TRANSPORT = "TransportError"
    RESPONSE_MISMATCH = "ResponseMismatchError"


class ProbeSuccess(BaseModel):
    kind: Literal["success"] = "success"
    status_code: int
    latency_ms: int


class ProbeFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    status_code: int = 0
    reason: FailureReason
    message: str = ""
    response_body: str = ""


class ProbeResult(BaseModel):
    """
    Outcome of exactly one probe execution.
    """

    probe_id: int
    timestamp: float = Field(default_factory=time.time)
    outcome: Annotated[Union[ProbeSuccess, ProbeFailure], Field(discriminator="kind")]

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, ProbeSuccess)
