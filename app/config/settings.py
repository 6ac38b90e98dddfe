import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, field_validator


class Settings(BaseModel):
    BOOK_QUOTES_FILE: str
    BOOK_RESULT_LIMIT: int
    BOOK_WINDOW_POLICY: Literal["inclusive", "exclusive"]
    BOOK_DEFAULT_SYMBOL: str
    BOOK_DEFAULT_POINT_IN_TIME: str

    @field_validator("BOOK_RESULT_LIMIT")
    @classmethod
    def require_non_negative_limit(cls, value: int) -> int:
        if value < 0:
            raise ValueError("BOOK_RESULT_LIMIT must be non-negative")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        return cls.model_validate(
            {
                "BOOK_QUOTES_FILE": os.getenv("BOOK_QUOTES_FILE"),
                "BOOK_RESULT_LIMIT": os.getenv("BOOK_RESULT_LIMIT", "5"),
                "BOOK_WINDOW_POLICY": os.getenv("BOOK_WINDOW_POLICY", "inclusive").strip().lower(),
                "BOOK_DEFAULT_SYMBOL": os.getenv("BOOK_DEFAULT_SYMBOL", "AAPL").strip(),
                "BOOK_DEFAULT_POINT_IN_TIME": os.getenv(
                    "BOOK_DEFAULT_POINT_IN_TIME", "2021-02-18T10:08:52.868Z"
                ).strip(),
            }
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
