"""Accounts and bearer token authentication.

Services:
    - TokenService: HS256 JWT issue/verify (PyJWT).
    - passwords: bcrypt hashing for self-registered accounts.
    - router: POST /auth/signup and /auth/login.
    - get_principal / require_admin: FastAPI dependencies for routes.
"""
