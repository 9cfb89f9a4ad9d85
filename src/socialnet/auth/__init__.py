"""Authentication and authorization.

Learn: Two kinds of credentials live here:
1. Bearer JWTs — access/refresh pair, one active refresh token per account
2. Single-use ephemeral tokens — email verification and password reset,
   stored only as SHA-256 hashes with an absolute expiry

Passwords are bcrypt-hashed; every CPU-heavy step runs off the event loop.
"""
