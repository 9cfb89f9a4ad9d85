"""Social Network API — accounts, credentials, profiles and the follow graph.

The backend behind a small social network: registration and login,
email verification and password reset, bearer tokens, role assignment,
profiles aggregated with follower counts, and follow relationships.
"""

__version__ = "0.1.0"
