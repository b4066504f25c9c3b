"""Rendering of ServiceResult for humans and machines."""
