"""Application layer: stateless services carrying the engine's algorithms."""
