"""Infrastructure: configuration, logging, persistence, error handling and API clients."""
