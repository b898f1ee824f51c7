# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles (one row per user, created by profile setup):
- id: uuid (primary key, foreign key to auth.users.id, on delete cascade)
- experience_level: experience_level_enum (not null) - values: beginner, intermediate, advanced, expert
- years_away: smallint (not null, 0..60) - years since the user last programmed
- activity_streak: integer (not null, default 0, >= 0)
- created_at: timestamptz (default: now() in utc)
- updated_at: timestamptz (default: now() in utc, refreshed by the set_profiles_updated_at trigger)

Row level security: a user reads and writes only the row whose id = auth.uid().
"""

PROFILES_TABLE = "profiles"
