import pytest

from app.core.errors import IncompleteRating, ValidationError
from app.modules.ratings.aggregator import (
    RATING_ASC, RATING_DESC, RatingSummary, average_for_dish, average_for_restaurant,
    effective_score, round_score, sort_by_rating, summarize_dish, validate_scores
)


def axes(flavor, texture, presentation, value):
    return {
        "flavor_rating": flavor,
        "texture_rating": texture,
        "presentation_rating": presentation,
        "value_rating": value,
    }


def test_no_reviews_means_no_rating():
    assert average_for_dish([]) is None
    assert summarize_dish([]) == RatingSummary(None, 0)


def test_effective_score_is_mean_of_axes_rounded():
    assert effective_score(axes(5, 4, 4, 4)) == 4.3
    assert effective_score(axes(5, 5, 4, 4)) == 4.5
    assert effective_score(axes(1, 2, 2, 2)) == 1.8


def test_legacy_rating_used_when_axes_missing():
    assert effective_score({"rating": 3}) == 3.0
    assert effective_score({}) is None


def test_axes_win_over_stored_rating():
    assert effective_score({**axes(2, 2, 2, 2), "rating": 5}) == 2.0


def test_dish_average_scenario():
    reviews = [axes(5, 5, 5, 5), axes(3, 3, 3, 3)]
    assert summarize_dish(reviews) == RatingSummary(4.0, 2)


def test_dish_average_mixes_axis_and_legacy_reviews():
    assert average_for_dish([axes(4, 4, 4, 5), {"rating": 2}]) == 3.2


def test_restaurant_average_weights_by_review_count():
    dish_one = [{"rating": 5}]
    dish_two = [{"rating": 1}, {"rating": 1}]
    summary = average_for_restaurant([dish_one, dish_two])
    assert summary.average == 2.3
    assert summary.review_count == 3


def test_restaurant_without_reviews():
    assert average_for_restaurant([[], []]) == RatingSummary(None, 0)
    assert average_for_restaurant([]) == RatingSummary(None, 0)


def test_round_score_is_half_up():
    assert round_score(2.25) == 2.3
    assert round_score(4.35) == 4.4
    assert round_score(4.0) == 4.0


def test_partial_axes_rejected():
    with pytest.raises(IncompleteRating) as exc:
        validate_scores({**axes(5, 4, 3, None)})
    assert exc.value.status_code == 422
    assert "value" in exc.value.detail


def test_partial_axes_rejected_even_with_legacy_rating():
    with pytest.raises(IncompleteRating):
        validate_scores({"flavor_rating": 4}, rating=4)


@pytest.mark.parametrize("bad", [0, 6, 2.5, True])
def test_axis_out_of_range_rejected(bad):
    with pytest.raises(ValidationError):
        validate_scores(axes(bad, 3, 3, 3))


def test_legacy_rating_accepted_alone():
    validate_scores({}, rating=4)
    with pytest.raises(ValidationError):
        validate_scores({}, rating=7)


def test_nothing_submitted_rejected():
    with pytest.raises(ValidationError):
        validate_scores({})


def test_sort_by_rating_puts_unrated_last():
    items = [
        {"id": "a", "avg_rating": None, "created_at": "2024-01-03"},
        {"id": "b", "avg_rating": 3.0, "created_at": "2024-01-01"},
        {"id": "c", "avg_rating": 4.5, "created_at": "2024-01-02"},
        {"id": "d", "avg_rating": 3.0, "created_at": "2024-01-04"},
    ]
    assert [i["id"] for i in sort_by_rating(items, RATING_DESC)] == ["c", "d", "b", "a"]
    assert [i["id"] for i in sort_by_rating(items, RATING_ASC)] == ["d", "b", "c", "a"]
