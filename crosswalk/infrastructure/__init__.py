"""Infrastructure layer: catalog connectivity, persistence and CLI."""
