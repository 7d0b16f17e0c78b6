from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")

SUCCESS_CODE = "200"
FAILURE_CODE = "499"


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapped around every response body."""

    code: str = SUCCESS_CODE
    msg: str = "success"
    model: Optional[T] = None


class ErrorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error_code: str = Field(alias="errorCode")
    message: str
    display_message: str = Field(alias="displayMessage")
    category: str


def ok(model=None, msg: str = "success") -> ApiResponse:
    return ApiResponse(code=SUCCESS_CODE, msg=msg, model=model)
