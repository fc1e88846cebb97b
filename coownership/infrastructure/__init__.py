"""Infrastructure layer - adapters for the application ports and observability."""
