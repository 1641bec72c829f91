"""Infrastructure layer - cross-cutting concerns for the engine."""
