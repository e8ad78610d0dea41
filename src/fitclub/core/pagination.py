from pydantic import BaseModel, Field, computed_field


class PaginationResult[T](BaseModel):
    """One page of a newest-first listing."""

    items: list[T] = Field(..., description="Items of the current page")
    total: int = Field(..., description="Number of matching items across all pages", ge=0)
    limit: int = Field(..., description="Page size", ge=1)
    offset: int = Field(..., description="Items skipped before this page", ge=0)

    @computed_field(description="Whether another page follows")  # type: ignore[prop-decorator]
    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total
