# Supabase tables: school, students, clubs, events, tracked_events, event_participants
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in pagination.py, tracking.py and service.py

"""
Expected Supabase table structure:

school:
- id: uuid (primary key)
- name: text (not null)
- location: text (nullable)
- image_url: text (nullable)
- subdomain: text (nullable)
- email_suffix: text (not null, unique) - e.g. "@kiit.ac.in"
- created_at: timestamp (default: now())

clubs:
- id: uuid (primary key)
- name: text (not null, unique)
- school_id: uuid (foreign key to school.id, not null)
- verification_status: text (not null, default 'pending') - pending | verified | rejected

events:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- date: timestamptz (not null)
- location: text (nullable)
- banner_url: text (nullable)
- event_type: text (not null) - intra-school | inter-school
- club_id: uuid (foreign key to clubs.id, not null)

tracked_events:
- student_id: uuid (foreign key to students.id, not null)
- event_id: uuid (foreign key to events.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (student_id, event_id)

event_participants:
- student_id: uuid (foreign key to students.id, not null)
- event_id: uuid (foreign key to events.id, not null)

Only events of verified clubs are ever returned by the discovery queries.
"""
