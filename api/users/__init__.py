"""User accounts: CRUD, search and statistics."""
