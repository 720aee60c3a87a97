from typing import Any, Generic, Literal, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Success envelope wrapping every response body."""
    status: Literal["success"] = "success"
    data: T


class ErrorEnvelope(BaseModel):
    """Error envelope returned by the exception handlers."""
    status: Literal["error"] = "error"
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


def ok(data: Any) -> dict:
    """Wrap a payload in the success envelope."""
    return {"status": "success", "data": data}
