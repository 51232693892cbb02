"""
Generic response envelopes
"""

import math
from pydantic import BaseModel, Field
from typing import Any, Optional, Dict, List, Generic, TypeVar, Union

T = TypeVar('T')


class PaginationMeta(BaseModel):
    """Pagination metadata"""
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    totalPages: int = Field(..., ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, totalPages=math.ceil(total / limit))


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope"""
    success: bool = True
    data: T
    meta: Optional[PaginationMeta] = None


class ErrorDetail(BaseModel):
    """Error detail schema"""
    message: str
    code: str
    details: Optional[Union[Dict[str, Any], List[Any]]] = None


class ErrorResponse(BaseModel):
    """Error envelope"""
    success: bool = False
    error: ErrorDetail


class MessageResponse(BaseModel):
    """Simple message payload"""
    message: str
