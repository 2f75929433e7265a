"""Dashboard widget persistence (read side)."""
