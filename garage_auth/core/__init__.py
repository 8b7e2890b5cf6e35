"""
Core utilities shared across the garage-auth API.

This package hosts:
- configuration (env vars read once into Settings)
- the typed error taxonomy
- cross-cutting adapters such as logging setup, the e-mail gateway,
  password hashing and rate limit helpers.

Services depend on these primitives instead of importing FastAPI or
storage layers directly.
"""
