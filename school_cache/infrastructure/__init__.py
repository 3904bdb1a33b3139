"""Infrastructure layer: cache stores, codec, managers, and monitoring."""
