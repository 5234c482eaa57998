"""
Rating aggregation.

A review carries either four axis scores (flavor, texture, presentation, value)
or a single legacy overall rating. Axis reviews collapse to the mean of their
four scores; dish and restaurant figures are means over those effective scores.
Everything is rounded half-up to one decimal and recomputed on every read.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence

from app.core.errors import IncompleteRating, ValidationError

AXES = ("flavor_rating", "texture_rating", "presentation_rating", "value_rating")
MIN_SCORE = 1
MAX_SCORE = 5

RATING_DESC = "rating_desc"
RATING_ASC = "rating_asc"


class RatingSummary(NamedTuple):
    average: Optional[float]
    review_count: int


def round_score(value: float) -> float:
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _in_range(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and MIN_SCORE <= value <= MAX_SCORE


def validate_scores(axes: Mapping[str, Optional[int]], rating: Optional[float] = None) -> None:
    """Reject a submission before anything is written."""
    present = [name for name in AXES if axes.get(name) is not None]
    if present and len(present) < len(AXES):
        missing = ", ".join(name.replace("_rating", "") for name in AXES if name not in present)
        raise IncompleteRating(f"Missing rating axes: {missing}")
    if present:
        for name in AXES:
            if not isinstance(axes[name], int) or not _in_range(axes[name]):
                raise ValidationError(f"{name} must be an integer between {MIN_SCORE} and {MAX_SCORE}")
        return
    if rating is None:
        raise ValidationError("A review needs either the four rating axes or an overall rating")
    if not _in_range(rating):
        raise ValidationError(f"rating must be between {MIN_SCORE} and {MAX_SCORE}")


def has_all_axes(review: Mapping[str, Any]) -> bool:
    return all(review.get(name) is not None for name in AXES)


def effective_score(review: Mapping[str, Any]) -> Optional[float]:
    if has_all_axes(review):
        return round_score(sum(review[name] for name in AXES) / len(AXES))
    rating = review.get("rating")
    return float(rating) if rating is not None else None


def _scores(reviews: Iterable[Mapping[str, Any]]) -> List[float]:
    return [s for s in (effective_score(r) for r in reviews) if s is not None]


def _summarize(scores: Sequence[float]) -> RatingSummary:
    if not scores:
        return RatingSummary(None, 0)
    return RatingSummary(round_score(sum(scores) / len(scores)), len(scores))


def summarize_dish(reviews: Iterable[Mapping[str, Any]]) -> RatingSummary:
    return _summarize(_scores(reviews))


def average_for_dish(reviews: Iterable[Mapping[str, Any]]) -> Optional[float]:
    return summarize_dish(reviews).average


def average_for_restaurant(dishes: Iterable[Iterable[Mapping[str, Any]]]) -> RatingSummary:
    """
    Takes the reviews of each dish. Every review weighs the same, so a dish with
    many reviews pulls harder than one with a single review.
    """
    scores: List[float] = []
    for reviews in dishes:
        scores.extend(_scores(reviews))
    return _summarize(scores)


def sort_by_rating(items: List[dict], order: str = RATING_DESC) -> List[dict]:
    """Sort rows carrying avg_rating; unrated rows go last, ties newest first."""
    by_newest = sorted(items, key=lambda item: str(item.get("created_at") or ""), reverse=True)
    rated = [item for item in by_newest if item.get("avg_rating") is not None]
    unrated = [item for item in by_newest if item.get("avg_rating") is None]
    rated.sort(key=lambda item: item["avg_rating"], reverse=(order != RATING_ASC))
    return rated + unrated
