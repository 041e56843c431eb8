"""HTTP/WebSocket server streaming simulation frames."""
