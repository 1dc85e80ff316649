"""
API package - HTTP boundary helpers for the word service.

This package provides:
- Request payload models (pydantic)
- Global middleware (request_id, error_envelope)
"""
