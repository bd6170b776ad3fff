"""Domain layer: entities shared across the application."""
