# Supabase Auth (auth.users), no tables of our own

"""
Sign-up, sign-in, refresh and sign-out go straight to Supabase Auth:
- auth.sign_up() with the chosen username in user metadata
- auth.sign_in_with_password() / auth.refresh_session()
- auth.get_user(jwt) to resolve the caller of every request
- auth.admin.sign_out(jwt) to end a session

The public profiles row belongs to the profiles module. Sign-up fills in the
username when Supabase returns a session immediately; otherwise the row is
created lazily on the user's first authenticated request.
"""
