from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class SlowResponse(BaseModel):
    kind: Literal["slow_response"] = "slow_response"
    expected_latency_ms: int
    observed_median_ms: int


class HardFailure(BaseModel):
    kind: Literal["hard_failure"] = "hard_failure"
    reason: str
    response_code: int = 0
    response_body: str = ""
    other_info: str = ""


class AlertEvent(BaseModel):
    """
    Alert produced by the latency aggregator. Consumed by the fan-out step and
    never persisted as such.
    """

    probe_id: int
    url: str
    request_type: str
    detail: Annotated[Union[SlowResponse, HardFailure], Field(discriminator="kind")]

    @property
    def is_failure(self) -> bool:
        return isinstance(self.detail, HardFailure)
