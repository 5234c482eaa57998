# Supabase table: dishes
# This file documents the expected database schema
# Actual operations are handled via the DataStore in service.py

"""
Expected Supabase table structure:

dishes:
- id: uuid (primary key)
- restaurant_id: uuid (foreign key to restaurants.id, on delete cascade)
- name: text (not null)
- description: text (nullable)
- price: numeric(10,2) (nullable)
- category: text (not null, default: 'main') - values: starter, main, dessert, drink
- created_by: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Only the creator may update or delete a dish (row-level security).
"""
