"""Search request value objects.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- No infrastructure dependencies
"""

from pydantic import BaseModel, ConfigDict, Field

from entity_search.domain.kinds import EntityKind


class PageSpec(BaseModel):
    """Window of the ranked match set requested by the caller.

    The upper bound on ``size`` is a deployment setting and is enforced by the
    dispatcher, not here.
    """

    model_config = ConfigDict(frozen=True)

    offset: int = Field(default=0, ge=0)
    size: int = Field(default=20, ge=1)

    @classmethod
    def of_page(cls, number: int, size: int) -> "PageSpec":
        """Build a window from a 1-based page number."""

        if number < 1:
            raise ValueError(f"page number must be >= 1, got {number}")
        return cls(offset=(number - 1) * size, size=size)


class Query(BaseModel):
    """Free text plus an optional entity kind filter and a page window."""

    model_config = ConfigDict(frozen=True)

    text: str
    kind: EntityKind | None = None
    page: PageSpec = Field(default_factory=PageSpec)

    def is_blank(self) -> bool:
        """True when the text has nothing to match after trimming."""

        return not self.text.strip()

    def for_kind(self, kind: EntityKind) -> "Query":
        """Same text and page window restricted to ``kind``."""

        return self.model_copy(update={"kind": kind})
