"""
Persistence adapters.

Services depend on the CredentialRepository interface (exists/find/create/
update_password_hash) rather than on SQLAlchemy sessions.
"""
