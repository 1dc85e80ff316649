"""
Pydantic models for /word and /seed endpoints.

Key features:
- frozen=True: Immutable after normalization
- str_strip_whitespace=True: Strip whitespace from strings
- extra='ignore': Ignore undeclared fields
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.normalize import tokenize_sentence


class BaseParamsModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        extra='ignore',
    )


class SeedPayload(BaseParamsModel):
    """Body for POST /seed (JSON or form)."""

    sentence: str = Field(
        min_length=1,
        max_length=20000,
        description="Free text whose words are resolved and stored"
    )

    def keys(self) -> List[str]:
        return tokenize_sentence(self.sentence)


class WordParams(BaseParamsModel):
    """Query params for GET /word/<word>."""

    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        le=300,
        description="Resolution deadline in seconds (defaults to config)"
    )
