from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ProbeDefinition(BaseModel):
    """
    Validated, immutable description of one HTTP(S) check.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    url: str
    method: str
    headers: Dict[str, str] = Field(default_factory=dict)
    form_params: Dict[str, Any] = Field(default_factory=dict)
    url_params: Dict[str, str] = Field(default_factory=dict)
    expected_status: int = 200
    expected_latency_ms: int
    interval: float = 300.0
    timeout: float = 10.0
    window_size: int = 3

    def __repr__(self):
        return f"ProbeDefinition(id={self.id}, method={self.method}, url={self.url})"
