"""Offset/limit windows for paged directory queries."""

from pydantic import BaseModel, ConfigDict, Field


class PagingWindow(BaseModel):
    """A page of results: skip ``offset`` rows, return at most ``limit``.

    ``limit=None`` means unbounded: every row from ``offset`` on is returned.
    """

    model_config = ConfigDict(frozen=True)

    offset: int = Field(default=0, ge=0, description="Rows to skip")
    limit: int | None = Field(default=None, gt=0, description="Maximum rows to return")

    @property
    def is_unbounded(self) -> bool:
        return self.limit is None


UNBOUNDED = PagingWindow()


def normalize(first_result: int | None, max_results: int | None) -> PagingWindow:
    """Translate the host's (first_result, max_results) pair into a window.

    A missing or negative ``first_result``, or a missing or non-positive
    ``max_results``, degrades to the unbounded window: callers must not expect
    truncation in that case.
    """
    if first_result is None or max_results is None:
        return UNBOUNDED
    if first_result < 0 or max_results <= 0:
        return UNBOUNDED
    return PagingWindow(offset=first_result, limit=max_results)
