"""Cards social API: notification delivery and presence core."""
