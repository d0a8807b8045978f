from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Dict, Generic, List, Optional, TypeVar, Union

MAX_PAGE_SIZE = 500

T = TypeVar("T")

FilterValue = Optional[Union[bool, int, float, str]]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ListQuery(ApiModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=MAX_PAGE_SIZE)
    sort_column: Optional[str] = None
    sort_direction: Optional[str] = None
    filters: Dict[str, FilterValue] = Field(default_factory=dict)

    @field_validator("filters", mode="before")
    @classmethod
    def none_filters_to_empty(cls, value):
        return {} if value is None else value

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PagedData(ApiModel, Generic[T]):
    total_items: int
    page: int
    page_size: int
    data: List[T] = Field(default_factory=list)


class ResponseData(ApiModel, Generic[T]):
    success: bool
    message: str = ""
    data: Optional[T] = None


class CountOut(ApiModel):
    total: int
