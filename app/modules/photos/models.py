# Supabase table: dish_photos (+ storage bucket dish-pics)
# This file documents the expected database schema
# Actual operations are handled via the DataStore/BlobStore in service.py

"""
Expected Supabase table structure:

dish_photos:
- id: uuid (primary key)
- dish_id: uuid (foreign key to dishes.id, on delete cascade)
- uploaded_by: uuid (foreign key to profiles.id)
- storage_path: text (not null) - {user_id}/{dish_id}/{timestamp_ms}-{file name}
- caption: text (nullable)
- is_featured: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Display order: featured photos first, newest first within each tier.
"""
