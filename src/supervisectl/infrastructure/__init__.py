"""Infrastructure layer - reading configuration documents from disk."""
