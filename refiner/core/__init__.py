"""Core contracts shared by every layer.

Exposes the option catalog, the request/prompt/parameter data types, and the
error taxonomy used across the HTTP boundary.
"""
