"""OS-facing layer: scheduler handlers and template loading."""
