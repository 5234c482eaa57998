import pytest

from app.core.errors import IncompleteRating, NotFound, PermissionDenied, ValidationError
from app.modules.reviews.schemas import ReviewUpsert
from app.modules.reviews.service import ReviewService
from tests.conftest import ALICE, BOB


@pytest.fixture
def dish(db):
    restaurant = db.insert("restaurants", {"name": "Casa Pepe", "created_by": ALICE["id"]})
    return db.insert("dishes", {"restaurant_id": restaurant["id"], "name": "Croquetas", "category": "starter", "created_by": ALICE["id"]})


def full(flavor, texture, presentation, value, **extra):
    return ReviewUpsert(
        flavor_rating=flavor, texture_rating=texture, presentation_rating=presentation, value_rating=value, **extra
    )


def test_review_stores_effective_rating(db, bob_store, dish):
    review = ReviewService(bob_store).upsert_review(dish["id"], BOB["id"], full(5, 4, 4, 4, comment="crispy"))
    assert review.effective_rating == 4.3
    assert review.rating == 4.3
    assert review.comment == "crispy"
    assert db.tables["reviews"][0]["rating"] == 4.3


def test_second_review_replaces_first(db, bob_store, dish):
    service = ReviewService(bob_store)
    first = service.upsert_review(dish["id"], BOB["id"], full(2, 2, 2, 2, comment="meh"))
    second = service.upsert_review(dish["id"], BOB["id"], full(5, 5, 5, 5))

    rows = db.tables["reviews"]
    assert len(rows) == 1
    assert second.id == first.id
    assert rows[0]["flavor_rating"] == 5
    assert rows[0]["rating"] == 5.0
    assert rows[0]["comment"] is None


def test_legacy_rating_clears_old_axes(db, bob_store, dish):
    service = ReviewService(bob_store)
    service.upsert_review(dish["id"], BOB["id"], full(2, 2, 2, 2))
    review = service.upsert_review(dish["id"], BOB["id"], ReviewUpsert(rating=4))
    assert review.flavor_rating is None
    assert review.effective_rating == 4.0


def test_missing_axis_rejected_before_write(db, bob_store, dish):
    with pytest.raises(IncompleteRating):
        ReviewService(bob_store).upsert_review(dish["id"], BOB["id"], full(5, 5, 5, None))
    assert db.tables["reviews"] == []


def test_out_of_range_rejected(bob_store, dish):
    with pytest.raises(ValidationError):
        ReviewService(bob_store).upsert_review(dish["id"], BOB["id"], full(5, 5, 5, 9))


def test_unknown_dish(bob_store):
    with pytest.raises(NotFound):
        ReviewService(bob_store).upsert_review("missing", BOB["id"], full(3, 3, 3, 3))


def test_denied_upsert_is_permission_denied(db, bob_store, dish):
    db.deny("reviews", "upsert")
    with pytest.raises(PermissionDenied):
        ReviewService(bob_store).upsert_review(dish["id"], BOB["id"], full(3, 3, 3, 3))


def test_own_review_is_optional(bob_store, dish):
    service = ReviewService(bob_store)
    assert service.get_own_review(dish["id"], BOB["id"]) is None
    service.upsert_review(dish["id"], BOB["id"], full(3, 3, 3, 3))
    assert service.get_own_review(dish["id"], BOB["id"]).effective_rating == 3.0


def test_dish_rating_recomputed_on_read(alice_store, bob_store, dish):
    assert ReviewService(bob_store).dish_rating(dish["id"]).model_dump() == {"avg_rating": None, "review_count": 0}
    ReviewService(alice_store).upsert_review(dish["id"], ALICE["id"], full(5, 5, 5, 5))
    ReviewService(bob_store).upsert_review(dish["id"], BOB["id"], full(3, 3, 3, 3))
    assert ReviewService(bob_store).dish_rating(dish["id"]).model_dump() == {"avg_rating": 4.0, "review_count": 2}

    ReviewService(bob_store).upsert_review(dish["id"], BOB["id"], full(1, 1, 1, 1))
    assert ReviewService(bob_store).dish_rating(dish["id"]).avg_rating == 3.0


def test_list_and_delete(alice_store, bob_store, dish):
    ReviewService(alice_store).upsert_review(dish["id"], ALICE["id"], full(5, 5, 5, 5))
    ReviewService(bob_store).upsert_review(dish["id"], BOB["id"], full(3, 3, 3, 3))
    assert [r.user_id for r in ReviewService(bob_store).list_reviews(dish["id"])] == [BOB["id"], ALICE["id"]]

    ReviewService(bob_store).delete_own_review(dish["id"], BOB["id"])
    assert [r.user_id for r in ReviewService(bob_store).list_reviews(dish["id"])] == [ALICE["id"]]
    with pytest.raises(NotFound):
        ReviewService(bob_store).delete_own_review(dish["id"], BOB["id"])
