# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via the DataStore in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (nullable) - copied from auth.users on first use
- username: text (nullable, unique when set) - left null on creation
- avatar_url: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

A profile row is created lazily the first time an authenticated user acts
(see ProfileService.ensure_profile). Rows are never deleted here; account
deletion cascades from auth.users.
"""
