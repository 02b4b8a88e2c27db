"""Small helpers without database or request dependencies."""
