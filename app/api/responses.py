from app.core.errors import ServiceResult, raise_for_result
from app.schemas.common import ApiResponse, ok
from app.schemas.user_schemas import MessageResponse


def respond(result: ServiceResult) -> ApiResponse:
    """Wrap a successful result in the envelope, or raise its error code."""
    value = raise_for_result(result)
    if value is None and result.message:
        value = MessageResponse(message=result.message)
    return ok(value)
