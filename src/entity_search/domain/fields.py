"""Per-kind field weighting consumed by the query builder."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MatchStrategy(str, Enum):
    """How the query text is matched against a field, on top of the analyzed base query."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    WILDCARD = "wildcard"


class FieldWeight(BaseModel):
    """One entry of a kind's field spec.

    A field may appear more than once with different strategies; the base
    (analyzed) sub-query searches each distinct field once, using the boost of
    its first entry.
    """

    model_config = ConfigDict(frozen=True)

    field_name: str = Field(min_length=1)
    strategy: MatchStrategy = MatchStrategy.EXACT
    boost: float = Field(default=1.0, gt=0.0)
