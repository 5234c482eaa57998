# Supabase table: group_invites (+ SQL functions get_group_invite, accept_group_invite)
# This file documents the expected database schema
# Actual operations are handled via the DataStore in service.py

"""
Expected Supabase table structure:

group_invites:
- id: uuid (primary key)
- group_id: uuid (foreign key to groups.id, on delete cascade)
- email: text (nullable) - informational only, never checked on accept
- invited_by: uuid (foreign key to profiles.id, not null)
- token: text (unique, not null) - url-safe random string
- status: text (not null, default: 'pending') - values: pending, accepted, revoked, expired
- expires_at: timestamp (not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

accept_group_invite(_token text) returns jsonb {"outcome", "group_id"}:
locks the invite row, applies the rules of lifecycle.evaluate_acceptance, and in
the same transaction inserts the group_members row (role member, existing rows
untouched) and marks the invite accepted, or marks it expired.
get_group_invite(_token text) returns the invite joined with its group name.
It is security definer so a non-member holding the link can see who invited them.

See supabase/migrations.
"""
