# Supabase table: topics
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL, policies and indexes live in supabase/migrations

"""
Expected Supabase table structure:

topics:
- id: uuid (primary key, default gen_random_uuid())
- user_id: uuid (foreign key to auth.users.id, not null, on delete cascade) - owner
- parent_id: uuid (foreign key to topics.id, nullable, on delete cascade, <> id)
- title: text (not null)
- description: text (nullable)
- status: topic_status_enum (not null, default 'to_do') - values: to_do, in_progress, completed
- technology: text (not null)
- leetcode_links: jsonb (not null, default '[]', must be an array of {title, url, difficulty})
- created_at: timestamptz (default: now() in utc)
- updated_at: timestamptz (default: now() in utc, refreshed by the set_topics_updated_at trigger)

Row level security: select/insert/update/delete only where user_id = auth.uid();
the anon role is denied everything.

Indexes (all lead with user_id so every owner-scoped filter or sort stays sub-linear):
- (user_id, technology)
- (user_id, parent_id)
- (user_id, created_at desc)
- (user_id, updated_at desc)
- (user_id, title)
- (user_id, status, technology)
- (user_id, parent_id, status)
"""

TOPICS_TABLE = "topics"

# PostgREST embed counting direct children through the parent_id foreign key
TOPIC_LIST_COLUMNS = "*, children:topics!parent_id(count)"
