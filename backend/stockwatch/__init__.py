"""stockwatch -- multi-source product resolution and restock tracking."""
