# nextlevel/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Application initialization and default admin creation
- db: Database configuration and connection management
- errors: Error taxonomy mapped to HTTP status codes
- security: Password hashing and the access/refresh token codec
"""
