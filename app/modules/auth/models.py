# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - OAuth sign-in (Google) and the PKCE code exchange
# - JWT token generation and validation
# - Session sign-out

"""
Supabase Auth provides:
- auth.sign_in_with_oauth() - Build the provider sign-in URL
- auth.exchange_code_for_session() - Turn the callback code into a session
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

The viewer role is derived from user_metadata.school_id, which the
validate-school-email hook guarantees for every account created with a
supported school email domain:
- school_id present -> student
- school_id absent  -> guest
"""
