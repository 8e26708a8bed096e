"""FraudBucket case management backend.

This service provides APIs for fraud analysts and administrators to:
- Sign in and keep a session alive with rotating refresh tokens
- Recover access through a time-boxed password reset link
- Manage analyst and administrator accounts
"""

__version__ = "0.1.0"
