from .consent import CategoryCheckResponse, ConsentActionResponse
from .policy import (
    CategoryListResponse,
    CategoryResponse,
    PolicyDocument,
    PolicyResponse,
    ScriptsResponse,
)

__all__ = [
    "CategoryCheckResponse",
    "CategoryListResponse",
    "CategoryResponse",
    "ConsentActionResponse",
    "PolicyDocument",
    "PolicyResponse",
    "ScriptsResponse",
]
