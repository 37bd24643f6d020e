"""Password hashing and bearer-token authentication."""
