# Supabase table: reviews
# This file documents the expected database schema
# Actual operations are handled via the DataStore in service.py

"""
Expected Supabase table structure:

reviews:
- id: uuid (primary key)
- dish_id: uuid (foreign key to dishes.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)
- rating: numeric(2,1) (not null) - effective score, kept for legacy readers
- flavor_rating: smallint (nullable, 1-5)
- texture_rating: smallint (nullable, 1-5)
- presentation_rating: smallint (nullable, 1-5)
- value_rating: smallint (nullable, 1-5)
- comment: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique constraint on (dish_id, user_id)

Writes go through an upsert on (dish_id, user_id): a second review from the
same user replaces the first, last write wins.
"""
