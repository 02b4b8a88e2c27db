"""Application services shared across modules."""
