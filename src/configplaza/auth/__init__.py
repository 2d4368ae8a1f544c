"""Authentication and authorization.

Learn: Two authentication paths feed one identity:
1. Web app → GitHub OAuth → session JWT (+ single-use refresh token)
2. acp CLI → long-lived CLI token in the X-CLI-TOKEN header

Both resolve to a CurrentUser, and auth.policy decides what that user
may see or change.
"""
