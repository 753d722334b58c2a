"""Infrastructure layer - storage, provider clients, and PDF rendering."""
