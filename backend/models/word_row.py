"""
Word Row Model - durable storage for resolved words.

One row per normalized key. Fields mirror WordRecord verbatim; groups and
entries are stored as JSON arrays.
"""
from sqlalchemy import BigInteger, Column, JSON, String
from sqlalchemy.orm import declarative_base

from models.word import WordRecord

Base = declarative_base()


class WordRow(Base):
    __tablename__ = "words"

    key = Column(String(255), primary_key=True)
    groups = Column(JSON, nullable=False, default=list)
    entries = Column(JSON, nullable=False, default=list)
    created_at = Column(BigInteger, nullable=False)  # epoch seconds
    updated_at = Column(BigInteger, nullable=False, index=True)

    @classmethod
    def from_record(cls, record: WordRecord) -> "WordRow":
        data = record.to_dict()
        return cls(
            key=data["key"],
            groups=data["groups"],
            entries=data["entries"],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )

    def to_record(self) -> WordRecord:
        return WordRecord(
            key=self.key,
            groups=self.groups or [],
            entries=self.entries or [],
            created_at=self.created_at or 0,
            updated_at=self.updated_at or 0,
        )

    def __repr__(self):
        return f"<WordRow {self.key} groups={len(self.groups or [])}>"
