"""Domain layer: pure business logic with no I/O."""
