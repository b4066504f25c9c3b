"""schedctl — calendar expressions to native OS scheduler jobs."""

__version__ = "0.1.0"
