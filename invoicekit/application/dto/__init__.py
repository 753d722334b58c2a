"""Data Transfer Objects for the API layer.

Request DTOs validate and parse incoming API requests; response DTOs
structure and serialize API responses.
"""
