"""Adapters for storage, queues and external services."""
