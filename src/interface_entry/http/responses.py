from __future__ import annotations

"""Standard error envelope returned by the HTTP surface."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiMeta(BaseModel):
    request_id: str = Field(alias="requestId")

    model_config = {"populate_by_name": True}


class ApiError(BaseModel):
    code: str
    message: str


class ApiResponse(BaseModel, Generic[T]):
    data: Optional[T]
    meta: ApiMeta
    errors: List[ApiError] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
