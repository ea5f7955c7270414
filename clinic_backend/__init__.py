"""
Clinic appointment booking backend.

Layout:
- config.py           : settings from environment / .env, logging setup
- errors.py           : error taxonomy mapped to HTTP status codes
- db.py               : SQLAlchemy base and session handling
- models.py           : ORM models (appointments, admin users)
- storage.py          : storage adapter, SQLite and PostgreSQL backends
- auth_security.py    : password hashing and JWT tokens
- auth_service.py     : login, token verification, admin seeding
- notifications.py    : email (SMTP) and WhatsApp (no-op) notifications
- api_main.py         : FastAPI app factory
- api_auth.py         : /api/auth routes
- api_appointments.py : /api/appointments routes
- cli.py              : command line for operators
"""

__version__ = "1.0.0"
