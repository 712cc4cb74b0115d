"""Infrastructure layer - logging, error handling and configuration."""
