"""DTO package for docrepo core.

Provides the pagination result union and the BaseResult pattern used by
repository write operations.
"""

from .pagination_dto import (
    AggregatePage,
    KeysetPage,
    OffsetPage,
    PaginationResult,
    pagination_result_adapter,
)
from .result_dto import BaseResult, DeleteResult, StatusCode, StatusDetail, UpdateManyResult

__all__ = [
    "AggregatePage",
    "KeysetPage",
    "OffsetPage",
    "PaginationResult",
    "pagination_result_adapter",
    "BaseResult",
    "StatusDetail",
    "StatusCode",
    "DeleteResult",
    "UpdateManyResult",
]
