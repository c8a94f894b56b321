from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint: {success, data?, error?}"""
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None


class MessageData(BaseModel):
    message: str


def error_response(error: str) -> dict:
    return {"success": False, "error": error}
