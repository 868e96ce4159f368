"""Infrastructure layer: schema model and SQL text generation."""
