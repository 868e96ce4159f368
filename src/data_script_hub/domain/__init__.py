"""Domain layer for Data Script Hub."""
