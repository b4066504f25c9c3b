"""Domain layer — schedule expression parsing and calendar interval expansion.

This layer depends only on stdlib.
It must never import from services, infrastructure, commands, or config.
"""
