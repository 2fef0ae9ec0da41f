"""Transport adapters (HTTP and WebSocket)."""
