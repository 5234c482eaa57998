from app.config import settings
from app.core.errors import NotFound, PermissionDenied, StorageFailure, ValidationError
from app.database.blob_storage import BlobStorageError, BlobStore
from app.database.store import DataStore, StoreError
from app.modules.photos.schemas import PhotoResponse, PhotoUpload
from fastapi import HTTPException
from typing import Any, Dict, Iterable, List, Optional
import logging
import re
import time

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif", "image/heic"}


def safe_file_name(filename: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]", "_", filename or "photo") or "photo"


def build_storage_path(user_id: str, dish_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{user_id}/{dish_id}/{timestamp_ms}-{safe_file_name(filename)}"


def order_photos(photos: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Featured photos first; newest first within each tier"""
    newest_first = sorted(photos, key=lambda p: str(p.get("created_at") or ""), reverse=True)
    return sorted(newest_first, key=lambda p: not p.get("is_featured"))


def validate_photo(upload: PhotoUpload) -> None:
    if upload.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(f"Unsupported image type: {upload.content_type}")
    if not upload.content:
        raise ValidationError("Photo file is empty")
    if len(upload.content) > settings.max_photo_bytes:
        raise ValidationError(f"Photo is larger than {settings.max_photo_bytes} bytes")


class PhotoService:
    def __init__(self, store: DataStore, blob_store: BlobStore):
        self.store = store
        self.blob_store = blob_store

    def to_response(self, row: Dict[str, Any]) -> PhotoResponse:
        return PhotoResponse(**{**row, "public_url": self.blob_store.get_public_url(row["storage_path"])})

    def photos_by_dish(self, dish_ids: Iterable[str]) -> Dict[str, List[PhotoResponse]]:
        """Ordered photos for several dishes in one query"""
        dish_ids = list(dish_ids)
        grouped: Dict[str, List[Dict[str, Any]]] = {dish_id: [] for dish_id in dish_ids}
        if dish_ids:
            for row in self.store.select("dish_photos", {"dish_id": dish_ids}):
                grouped.setdefault(row["dish_id"], []).append(row)
        return {dish_id: [self.to_response(r) for r in order_photos(rows)] for dish_id, rows in grouped.items()}

    def upload_photo(
        self,
        dish_id: str,
        user_id: str,
        upload: PhotoUpload,
        caption: Optional[str] = None,
        is_featured: bool = False,
    ) -> PhotoResponse:
        """
        Store the file, then record it.

        The two steps are not atomic. If the record insert fails the object stays
        in storage and the error names the step that failed.
        """
        validate_photo(upload)
        try:
            if not self.store.select("dishes", {"id": dish_id}):
                raise NotFound("Dish not found")
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

        storage_path = build_storage_path(user_id, dish_id, upload.filename)
        try:
            self.blob_store.upload(storage_path, upload.content, upload.content_type)
        except BlobStorageError as e:
            logger.warning(f"Photo upload failed for dish {dish_id}: {e}")
            raise StorageFailure("photo_upload", f"Photo upload failed: {e}", entity_id=dish_id)

        try:
            row = self.store.insert("dish_photos", {
                "dish_id": dish_id,
                "uploaded_by": user_id,
                "storage_path": storage_path,
                "caption": caption or None,
                "is_featured": is_featured,
            })
        except StoreError as e:
            logger.warning(f"Photo stored at {storage_path} but record insert failed: {e.message}")
            raise StorageFailure("photo_record", f"Photo uploaded but could not be saved: {e.message}", entity_id=dish_id)
        return self.to_response(row)

    def list_photos(self, dish_id: str) -> List[PhotoResponse]:
        try:
            return self.photos_by_dish([dish_id])[dish_id]
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def _require_photo(self, photo_id: str) -> Dict[str, Any]:
        rows = self.store.select("dish_photos", {"id": photo_id})
        if not rows:
            raise NotFound("Photo not found")
        return rows[0]

    def set_featured(self, photo_id: str, user_id: str, is_featured: bool) -> PhotoResponse:
        """Only the uploader may feature or unfeature a photo"""
        try:
            photo = self._require_photo(photo_id)
            if photo.get("uploaded_by") != user_id:
                raise PermissionDenied("Only the uploader can change this photo")
            rows = self.store.update(
                "dish_photos", {"id": photo_id, "uploaded_by": user_id}, {"is_featured": is_featured}
            )
            if not rows:
                raise PermissionDenied("Only the uploader can change this photo")
            return self.to_response(rows[0])
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)

    def delete_photo(self, photo_id: str, user_id: str) -> bool:
        try:
            photo = self._require_photo(photo_id)
            deleted = self.store.delete("dish_photos", {"id": photo_id, "uploaded_by": user_id})
            if not deleted:
                raise PermissionDenied("Only the uploader can delete this photo")
        except HTTPException:
            raise
        except StoreError as e:
            raise HTTPException(status_code=500, detail=e.message)
        if not self.blob_store.remove(photo["storage_path"]):
            logger.warning(f"Photo {photo_id} deleted but {photo['storage_path']} is still in storage")
        return True
