"""Domain layer: registry payload models and output formatting."""
