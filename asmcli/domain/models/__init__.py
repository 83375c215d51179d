"""Domain models (value objects and inventory records)."""
