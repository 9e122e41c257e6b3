"""Application layer: configuration, FastAPI app and WebSocket handling."""
