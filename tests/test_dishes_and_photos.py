import pytest

from app.core.errors import IncompleteRating, NotFound, PermissionDenied, StorageFailure, ValidationError
from app.modules.dishes.schemas import DishCategory, DishCreate, DishUpdate
from app.modules.dishes.service import DishService
from app.modules.photos.schemas import PhotoUpload
from app.modules.photos.service import PhotoService, build_storage_path, order_photos, safe_file_name
from tests.conftest import ALICE, BOB
from tests.fakes import FakeBlobStore

JPEG = PhotoUpload(filename="my paella!.jpg", content=b"\xff\xd8\xff fake", content_type="image/jpeg")


@pytest.fixture
def restaurant(db):
    return db.insert("restaurants", {"name": "Casa Pepe", "created_by": ALICE["id"]})


def new_dish(restaurant, **extra):
    return DishCreate(restaurant_id=restaurant["id"], name="Paella", category=DishCategory.MAIN, **extra)


def test_safe_file_name_and_path():
    assert safe_file_name("my paella!.jpg") == "my_paella_.jpg"
    assert build_storage_path("u1", "d1", "a b.png", timestamp_ms=1700000000000) == "u1/d1/1700000000000-a_b.png"


def test_order_photos_featured_then_newest():
    photos = [
        {"id": "old", "is_featured": False, "created_at": "2024-01-01"},
        {"id": "new", "is_featured": False, "created_at": "2024-03-01"},
        {"id": "star-old", "is_featured": True, "created_at": "2024-01-15"},
        {"id": "star-new", "is_featured": True, "created_at": "2024-02-01"},
    ]
    assert [p["id"] for p in order_photos(photos)] == ["star-new", "star-old", "new", "old"]


def test_create_plain_dish(db, alice_store, blob, restaurant):
    result = DishService(alice_store, blob).create_dish(new_dish(restaurant, price=12.5), ALICE["id"])
    assert result.dish.name == "Paella"
    assert result.dish.price == 12.5
    assert result.review is None and result.photo is None
    assert db.tables["dishes"][0]["category"] == "main"


def test_create_dish_with_review_and_photo(db, alice_store, blob, restaurant):
    result = DishService(alice_store, blob).create_dish(
        new_dish(restaurant, flavor_rating=5, texture_rating=5, presentation_rating=4, value_rating=4, comment="wow"),
        ALICE["id"],
        photo=JPEG,
        caption="Socarrat",
    )
    assert result.review.effective_rating == 4.5
    assert result.photo.caption == "Socarrat"
    assert result.photo.storage_path.startswith(f"{ALICE['id']}/{result.dish.id}/")
    assert result.photo.storage_path.endswith("-my_paella_.jpg")
    assert result.photo.public_url.endswith(result.photo.storage_path)
    assert list(blob.objects) == [result.photo.storage_path]


def test_partial_initial_axes_rejected_before_dish_exists(db, alice_store, blob, restaurant):
    with pytest.raises(IncompleteRating):
        DishService(alice_store, blob).create_dish(new_dish(restaurant, flavor_rating=5, texture_rating=4), ALICE["id"])
    assert db.tables["dishes"] == []


def test_bad_photo_rejected_before_dish_exists(db, alice_store, blob, restaurant):
    text = PhotoUpload(filename="notes.txt", content=b"hi", content_type="text/plain")
    with pytest.raises(ValidationError):
        DishService(alice_store, blob).create_dish(new_dish(restaurant), ALICE["id"], photo=text)
    assert db.tables["dishes"] == []


def test_unknown_restaurant(alice_store, blob):
    with pytest.raises(NotFound):
        DishService(alice_store, blob).create_dish(DishCreate(restaurant_id="missing", name="Ghost"), ALICE["id"])


def test_review_failure_keeps_dish(db, alice_store, blob, restaurant):
    db.fail("reviews", "upsert", "timeout")
    with pytest.raises(StorageFailure) as exc:
        DishService(alice_store, blob).create_dish(
            new_dish(restaurant, flavor_rating=3, texture_rating=3, presentation_rating=3, value_rating=3), ALICE["id"]
        )
    assert exc.value.failed_step == "initial_review"
    assert exc.value.entity_id == db.tables["dishes"][0]["id"]
    assert exc.value.status_code == 502


def test_photo_upload_failure_keeps_dish_and_review(db, alice_store, restaurant):
    with pytest.raises(StorageFailure) as exc:
        DishService(alice_store, FakeBlobStore(fail_uploads=True)).create_dish(
            new_dish(restaurant, flavor_rating=4, texture_rating=4, presentation_rating=4, value_rating=4),
            ALICE["id"],
            photo=JPEG,
        )
    assert exc.value.failed_step == "photo_upload"
    assert exc.value.detail["message"].startswith("Dish created")
    assert len(db.tables["dishes"]) == 1
    assert len(db.tables["reviews"]) == 1
    assert db.tables["dish_photos"] == []


def test_photo_record_failure_is_reported(db, alice_store, blob, restaurant):
    db.fail("dish_photos", "insert", "row-level security")
    with pytest.raises(StorageFailure) as exc:
        DishService(alice_store, blob).create_dish(new_dish(restaurant), ALICE["id"], photo=JPEG)
    assert exc.value.failed_step == "photo_record"
    assert len(blob.objects) == 1


def test_only_creator_edits_and_deletes(db, alice_store, bob_store, blob, restaurant):
    dish = DishService(alice_store, blob).create_dish(new_dish(restaurant), ALICE["id"]).dish
    with pytest.raises(PermissionDenied):
        DishService(bob_store, blob).update_dish(dish.id, DishUpdate(name="Mine"), BOB["id"])
    with pytest.raises(PermissionDenied):
        DishService(bob_store, blob).delete_dish(dish.id, BOB["id"])

    updated = DishService(alice_store, blob).update_dish(dish.id, DishUpdate(price=9, category=DishCategory.DESSERT), ALICE["id"])
    assert (updated.price, updated.category) == (9, DishCategory.DESSERT)
    assert DishService(alice_store, blob).delete_dish(dish.id, ALICE["id"])
    assert db.tables["dishes"] == []


def test_zero_row_delete_is_permission_denied(db, alice_store, blob, restaurant):
    dish = DishService(alice_store, blob).create_dish(new_dish(restaurant), ALICE["id"]).dish
    db.deny("dishes", "delete")
    with pytest.raises(PermissionDenied):
        DishService(alice_store, blob).delete_dish(dish.id, ALICE["id"])


def test_photos_listed_in_display_order(db, alice_store, bob_store, blob, restaurant):
    dish = DishService(alice_store, blob).create_dish(new_dish(restaurant), ALICE["id"]).dish
    service = PhotoService(bob_store, blob)
    first = service.upload_photo(dish.id, BOB["id"], JPEG)
    second = service.upload_photo(dish.id, BOB["id"], JPEG.model_copy(update={"filename": "b.jpg"}))
    featured = service.upload_photo(dish.id, BOB["id"], JPEG.model_copy(update={"filename": "c.jpg"}))
    service.set_featured(first.id, BOB["id"], True)

    assert [p.id for p in service.list_photos(dish.id)] == [first.id, featured.id, second.id]


def test_only_uploader_can_feature_or_delete(db, alice_store, bob_store, blob, restaurant):
    dish = DishService(alice_store, blob).create_dish(new_dish(restaurant), ALICE["id"]).dish
    photo = PhotoService(bob_store, blob).upload_photo(dish.id, BOB["id"], JPEG)
    with pytest.raises(PermissionDenied):
        PhotoService(alice_store, blob).set_featured(photo.id, ALICE["id"], True)
    with pytest.raises(PermissionDenied):
        PhotoService(alice_store, blob).delete_photo(photo.id, ALICE["id"])

    assert PhotoService(bob_store, blob).delete_photo(photo.id, BOB["id"])
    assert blob.objects == {}
    assert db.tables["dish_photos"] == []


def test_deleting_dish_cascades(db, alice_store, bob_store, blob, restaurant):
    dish = DishService(alice_store, blob).create_dish(
        new_dish(restaurant, flavor_rating=4, texture_rating=4, presentation_rating=4, value_rating=4), ALICE["id"], photo=JPEG
    ).dish
    DishService(alice_store, blob).delete_dish(dish.id, ALICE["id"])
    assert db.tables["reviews"] == []
    assert db.tables["dish_photos"] == []
