"""
Models package - word record value type and SQLAlchemy row model
"""
from models.word import WordBuilder, WordRecord
from models.word_row import Base, WordRow

__all__ = [
    'Base',
    'WordBuilder',
    'WordRecord',
    'WordRow',
]
