"""
Result view models.

Filter settings and the categorized view consumed by the presentation
layer. Categorized views are derived on every filter change and never
cached.
"""

from enum import Enum
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from menu_analysis.domain.menu.models import FoodAnalysisResult, Suitability


class SortBy(str, Enum):
    NAME = "name"
    SUITABILITY = "suitability"
    CONFIDENCE = "confidence"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ResultsFilter(BaseModel):
    """
    Filter and sort settings.

    Defaults select all three suitabilities and sort by suitability,
    ascending (good, careful, avoid).

    Example:
        >>> ResultsFilter(suitability={"careful"}, search_text="salmon")
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    suitability: Optional[FrozenSet[Suitability]] = Field(
        default_factory=lambda: frozenset(Suitability)
    )
    search_text: Optional[str] = None
    sort_by: SortBy = SortBy.SUITABILITY
    sort_direction: SortDirection = SortDirection.ASC


class CategorizedResults(BaseModel):
    """Results partitioned by suitability."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    good: List[FoodAnalysisResult] = Field(default_factory=list)
    careful: List[FoodAnalysisResult] = Field(default_factory=list)
    avoid: List[FoodAnalysisResult] = Field(default_factory=list)
    total_items: int = 0
