"""Infrastructure adapters: persistence, security and realtime delivery."""
