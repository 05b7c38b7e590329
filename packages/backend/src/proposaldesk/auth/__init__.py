"""Authentication.

Users log in with email/password and receive JWT access/refresh tokens.
Every gated request presents the access token as a Bearer credential;
CredentialVerifier resolves it to a Principal (user id + current role).
"""
