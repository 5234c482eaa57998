import pytest

from app.core.errors import NotFound, PermissionDenied, Unauthenticated, ValidationError
from app.database.store import StoreError, UNIQUE_VIOLATION
from app.modules.profiles.schemas import ProfileUpdate
from app.modules.profiles.service import ProfileService
from app.modules.restaurants.schemas import RestaurantCreate, RestaurantUpdate
from app.modules.restaurants.service import RestaurantService, build_maps_link
from tests.conftest import ALICE, BOB


def add_dish_with_ratings(db, restaurant_id, ratings):
    dish = db.insert("dishes", {"restaurant_id": restaurant_id, "name": "d", "category": "main", "created_by": ALICE["id"]})
    for i, rating in enumerate(ratings):
        db.insert("reviews", {"dish_id": dish["id"], "user_id": f"reviewer-{i}", "rating": rating})
    return dish


def test_maps_link():
    assert build_maps_link("Casa Pepe", " Calle Mayor 1 ", "Madrid") == (
        "https://www.google.com/maps/search/?api=1&query=Casa%20Pepe%2C%20Calle%20Mayor%201%2C%20Madrid"
    )
    assert build_maps_link(None, "  ", None) is None


def test_restaurant_average_is_weighted_by_reviews(db, alice_store):
    created = RestaurantService(alice_store).create_restaurant(RestaurantCreate(name="Weighted"), ALICE["id"])
    add_dish_with_ratings(db, created.id, [5.0])
    add_dish_with_ratings(db, created.id, [1.0, 1.0])

    detail = RestaurantService(alice_store).get_restaurant_detail(created.id)
    assert (detail.avg_rating, detail.review_count, detail.dish_count) == (2.3, 3, 2)


def test_restaurant_without_reviews(alice_store):
    created = RestaurantService(alice_store).create_restaurant(RestaurantCreate(name="Empty"), ALICE["id"])
    [summary] = RestaurantService(alice_store).list_restaurants(ALICE["id"])
    assert summary.id == created.id
    assert (summary.avg_rating, summary.review_count) == (None, 0)


def test_detail_sorts_dishes_by_rating(db, alice_store):
    created = RestaurantService(alice_store).create_restaurant(RestaurantCreate(name="Sorted"), ALICE["id"])
    low = add_dish_with_ratings(db, created.id, [2.0])
    unrated = add_dish_with_ratings(db, created.id, [])
    high = add_dish_with_ratings(db, created.id, [4.0, 5.0])

    service = RestaurantService(alice_store)
    assert [d.id for d in service.get_restaurant_detail(created.id).dishes] == [high["id"], unrated["id"], low["id"]]
    assert [d.id for d in service.get_restaurant_detail(created.id, sort="rating_desc").dishes] == [high["id"], low["id"], unrated["id"]]
    assert [d.id for d in service.get_restaurant_detail(created.id, sort="rating_asc").dishes] == [low["id"], high["id"], unrated["id"]]
    with pytest.raises(ValidationError):
        service.get_restaurant_detail(created.id, sort="alphabetical")


def test_only_creator_mutates_restaurant(db, alice_store, bob_store):
    created = RestaurantService(alice_store).create_restaurant(RestaurantCreate(name="Mine", city="Sevilla"), ALICE["id"])
    with pytest.raises(PermissionDenied):
        RestaurantService(bob_store).update_restaurant(created.id, RestaurantUpdate(name="Ours"), BOB["id"])
    with pytest.raises(PermissionDenied):
        RestaurantService(bob_store).delete_restaurant(created.id, BOB["id"])

    updated = RestaurantService(alice_store).update_restaurant(created.id, RestaurantUpdate(city=""), ALICE["id"])
    assert updated.city is None


def test_blank_restaurant_rename_is_rejected(db, alice_store):
    created = RestaurantService(alice_store).create_restaurant(RestaurantCreate(name="Named"), ALICE["id"])
    with pytest.raises(ValidationError):
        RestaurantService(alice_store).update_restaurant(created.id, RestaurantUpdate(name="  "), ALICE["id"])
    assert db.tables["restaurants"][0]["name"] == "Named"


def test_rating_sort_ranks_before_paging(db, alice_store):
    service = RestaurantService(alice_store)
    best = service.create_restaurant(RestaurantCreate(name="Best"), ALICE["id"])
    add_dish_with_ratings(db, best.id, [5.0])
    middling = service.create_restaurant(RestaurantCreate(name="Middling"), ALICE["id"])
    add_dish_with_ratings(db, middling.id, [3.0])
    for i in range(3):
        service.create_restaurant(RestaurantCreate(name=f"Newer {i}"), ALICE["id"])

    assert [r.name for r in service.list_restaurants(ALICE["id"], sort="rating_desc", limit=1)] == ["Best"]
    assert [r.name for r in service.list_restaurants(ALICE["id"], sort="rating_desc", limit=1, offset=1)] == ["Middling"]
    assert [r.name for r in service.list_restaurants(ALICE["id"], sort="rating_asc", limit=2)] == ["Middling", "Best"]
    # without a sort, paging stays newest first
    assert [r.name for r in service.list_restaurants(ALICE["id"], limit=1)] == ["Newer 2"]


def test_deleting_restaurant_cascades_to_dishes(db, alice_store):
    created = RestaurantService(alice_store).create_restaurant(RestaurantCreate(name="Gone"), ALICE["id"])
    add_dish_with_ratings(db, created.id, [3.0])
    RestaurantService(alice_store).delete_restaurant(created.id, ALICE["id"])
    assert db.tables["dishes"] == [] and db.tables["reviews"] == []
    with pytest.raises(NotFound):
        RestaurantService(alice_store).get_restaurant_detail(created.id)


def test_ensure_profile_creates_once(db, alice_store):
    first = ProfileService(alice_store).ensure_profile(ALICE)
    second = ProfileService(alice_store).ensure_profile(ALICE)
    assert first.id == second.id == ALICE["id"]
    assert first.username is None
    assert first.email == ALICE["email"]
    assert len(db.tables["profiles"]) == 1


def test_ensure_profile_requires_identity(alice_store):
    with pytest.raises(Unauthenticated):
        ProfileService(alice_store).ensure_profile(None)
    with pytest.raises(Unauthenticated):
        ProfileService(alice_store).ensure_profile({"email": "x@example.com"})


def test_ensure_profile_recovers_from_insert_race(db, alice_store, monkeypatch):
    real_insert = alice_store.insert

    def racing_insert(table, row):
        # another request inserts the same profile first
        real_insert(table, row)
        raise StoreError("duplicate key value violates unique constraint", code=UNIQUE_VIOLATION)

    monkeypatch.setattr(alice_store, "insert", racing_insert)
    profile = ProfileService(alice_store).ensure_profile(ALICE)
    assert profile.id == ALICE["id"]
    assert len(db.tables["profiles"]) == 1


def test_username_update_and_uniqueness(alice_store, bob_store):
    ProfileService(alice_store).update_profile(ALICE, ProfileUpdate(username="alice"))
    assert ProfileService(alice_store).get_profile(ALICE["id"]).username == "alice"
    # setting your own username again is fine
    ProfileService(alice_store).update_profile(ALICE, ProfileUpdate(username="alice"))
    with pytest.raises(ValidationError):
        ProfileService(bob_store).update_profile(BOB, ProfileUpdate(username="alice"))


def test_unknown_profile(alice_store):
    with pytest.raises(NotFound):
        ProfileService(alice_store).get_profile("nobody")
