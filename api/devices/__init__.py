"""Devices: CRUD, status transitions, bulk updates and statistics."""
