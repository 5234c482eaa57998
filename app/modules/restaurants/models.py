# Supabase table: restaurants
# This file documents the expected database schema
# Actual operations are handled via the DataStore in service.py

"""
Expected Supabase table structure:

restaurants:
- id: uuid (primary key)
- name: text (not null)
- city: text (nullable)
- address: text (nullable)
- latitude: double precision (nullable)
- longitude: double precision (nullable)
- created_by: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Only the creator may update or delete a restaurant. Deleting one cascades to
its dishes (and from there to reviews and photo rows) and to group links.
"""
