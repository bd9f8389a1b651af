"""Live map presence server."""
