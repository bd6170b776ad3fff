"""HTTP and websocket API built with FastAPI."""
