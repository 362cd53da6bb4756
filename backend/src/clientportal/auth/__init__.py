"""Authentication: password hashing, JWT tokens, login endpoints."""
