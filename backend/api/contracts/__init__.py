"""
Request payload contracts (pydantic).
"""

from .words import SeedPayload, WordParams

__all__ = ['SeedPayload', 'WordParams']
