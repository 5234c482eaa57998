# Supabase tables: groups, group_members, group_restaurants
# This file documents the expected database schema
# Actual operations are handled via the DataStore in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- created_by: uuid (foreign key to profiles.id, not null) - creator, always acts as owner
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

group_members:
- group_id: uuid (foreign key to groups.id, on delete cascade)
- user_id: uuid (foreign key to profiles.id)
- role: text (not null, default: 'member') - values: owner, admin, member
- invited_by: uuid (nullable, foreign key to profiles.id)
- joined_at: timestamp (default: now())
- primary key (group_id, user_id)

group_restaurants:
- group_id: uuid (foreign key to groups.id, on delete cascade)
- restaurant_id: uuid (foreign key to restaurants.id, on delete cascade)
- added_by: uuid (foreign key to profiles.id)
- created_at: timestamp (default: now())
- primary key (group_id, restaurant_id)

The creator may have no group_members row (older groups were created without
one); app.core.permissions.resolve_effective_role treats them as owner anyway.
"""
