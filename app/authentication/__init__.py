"""
Authentication application.

Key components:
    - Group model: Ownership scope for ledger data
    - User model: Custom email-based user authentication
    - JWT token endpoints (djangorestframework-simplejwt)

Usage:
    from authentication.models import Group, User
"""
