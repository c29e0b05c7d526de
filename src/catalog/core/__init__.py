"""Domain layer: product models, error taxonomy and the cache-coherence service."""
