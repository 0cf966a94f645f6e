from typing import Literal
from pydantic import BaseModel

SortOrder = Literal["asc", "desc"]

class Pagination(BaseModel):
    limit: int
    offset: int
    total: int
    has_more: bool

def paginate(limit: int, offset: int, total: int) -> Pagination:
    return Pagination(limit=limit, offset=offset, total=total, has_more=offset + limit < total)
