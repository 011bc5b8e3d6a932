# gemquest/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: role seeding and default admin creation
- db: Database configuration and connection management
- errors: error taxonomy shared by services and the API layer
- permissions: static role -> permission table
- security: password hashing, single-use tokens and JWT session tokens
"""
