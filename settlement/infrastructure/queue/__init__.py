"""Durable delay queue backends and the database queue worker."""
