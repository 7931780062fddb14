"""Toolpath model, geometry and cutting-parameter helpers."""
