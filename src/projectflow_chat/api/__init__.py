"""HTTP and WebSocket API surface."""
