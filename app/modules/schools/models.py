# Supabase tables: school
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

school:
- id: uuid (primary key)
- name: text (not null)
- email_suffix: text (not null, unique) - the email domain with a leading "@", e.g. "@kiit.ac.in".
  Matched case-insensitively (ilike), so "@KIIT.ac.in" and "@kiit.ac.in" must not both exist.
- location: text
- image_url: text

The validate-school-email hook is registered in Supabase Auth and is called
before an account is created. It answers 200 with the school id for a
supported domain; 401 and 404 make Supabase refuse the sign-up.
"""
