# Supabase tables: clubs, students
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

students:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null)
- school_id: uuid (foreign key to school.id, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

clubs:
- id: uuid (primary key)
- name: text (not null, unique)
- description: text (nullable)
- category: text (nullable)
- logo_url: text (nullable)
- school_id: uuid (foreign key to school.id, not null)
- leader_id: uuid (foreign key to students.id, not null)
- verification_status: text (not null, default 'pending') - pending | verified | rejected
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

New clubs start as pending; an admin verifies them outside this service.
Events of a club are only discoverable once it is verified.

memberships:
- student_id: uuid (foreign key to students.id, not null)
- club_id: uuid (foreign key to clubs.id, not null)
- unique (student_id, club_id)
"""
