from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Literal

Op = Literal["eq", "neq", "gt", "gte", "lt", "lte", "in", "between", "exists", "contains"]
Dir = Literal["asc", "desc"]

class FilterClause(BaseModel):
    field: str
    operator: Op
    value: Any = None

class SortClause(BaseModel):
    field: str
    direction: Dir = "asc"
    priority: int = Field(default=0, ge=0)

class Page(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=25, ge=1, alias="pageSize")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

class UniversalQuery(BaseModel):
    filters: List[FilterClause] = []
    sort: List[SortClause] = []
    page: Page = Page()
