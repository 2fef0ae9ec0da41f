"""WebSocket interfaces."""
