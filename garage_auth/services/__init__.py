"""
High-level use cases for the garage-auth API.

Each service module orchestrates repositories/adapters to implement
business rules (request signup, approve it, reset a password).

Routers (FastAPI endpoints) call these services instead of manipulating
the database or the code registry directly.
"""
