"""Output layer - JSON, quiet and Rich rendering of ServiceResult."""
