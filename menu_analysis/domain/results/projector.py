"""
Results projection.

Filtering, sorting and categorization of analysis results. Pure
functions of their inputs: identical inputs give identical output.
"""

import unicodedata
from typing import Any, Callable, Dict, List, Sequence

from menu_analysis.domain.menu.models import FoodAnalysisResult, Suitability
from menu_analysis.domain.results.models import (
    CategorizedResults,
    ResultsFilter,
    SortBy,
    SortDirection,
)


def _name_key(result: FoodAnalysisResult) -> str:
    """Accent- and case-insensitive collation key."""
    decomposed = unicodedata.normalize("NFKD", result.item_name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


_SORT_KEYS: Dict[SortBy, Callable[[FoodAnalysisResult], Any]] = {
    SortBy.NAME: _name_key,
    SortBy.CONFIDENCE: lambda result: result.confidence,
    SortBy.SUITABILITY: lambda result: result.suitability.rank,
}


class ResultsProjector:
    """
    Applies a ResultsFilter and categorizes results.

    Example:
        >>> projector = ResultsProjector()
        >>> visible = projector.apply(response.results, ResultsFilter(search_text="salmon"))
        >>> view = projector.categorize(visible)
        >>> view.total_items == len(visible)
        True
    """

    def apply(
        self,
        results: Sequence[FoodAnalysisResult],
        results_filter: ResultsFilter,
    ) -> List[FoodAnalysisResult]:
        """
        Filter then sort results.

        Filtering keeps items whose suitability is selected, then items
        whose name or explanation contains the trimmed search text
        (case-insensitive). Sorting is stable: equal keys keep input
        order in both directions.

        Args:
            results: Results in analysis order
            results_filter: Filter and sort settings

        Returns:
            New filtered and sorted list
        """
        selected = results_filter.suitability
        if selected is None:
            selected = frozenset(Suitability)
        filtered = [r for r in results if r.suitability in selected]

        search = (results_filter.search_text or "").strip().casefold()
        if search:
            filtered = [
                r
                for r in filtered
                if search in r.item_name.casefold() or search in r.explanation.casefold()
            ]

        # sorted() keeps ties in input order even with reverse=True
        return sorted(
            filtered,
            key=_SORT_KEYS[results_filter.sort_by],
            reverse=results_filter.sort_direction is SortDirection.DESC,
        )

    def categorize(self, results: Sequence[FoodAnalysisResult]) -> CategorizedResults:
        """Partition results by suitability, keeping input order within each bucket."""
        buckets: Dict[Suitability, List[FoodAnalysisResult]] = {s: [] for s in Suitability}
        for result in results:
            buckets[result.suitability].append(result)

        return CategorizedResults(
            good=buckets[Suitability.GOOD],
            careful=buckets[Suitability.CAREFUL],
            avoid=buckets[Suitability.AVOID],
            total_items=len(results),
        )
