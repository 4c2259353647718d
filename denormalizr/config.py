"""
Runtime configuration for the denormalizers.

Values come from keyword arguments or, through `from_env()`, from the
process environment after loading a `.env` file.
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

PACKAGE_LOGGERS = ("Denormalizer", "MemoizedDenormalizer", "MemoCache", "SchemaDispatch")

_TRUE_VALUES = {"1", "true", "yes", "on"}


class DenormalizerConfig(BaseModel):
    """
    Attributes:
        memoized: Use the memoized engine when a call does not choose one
        private_prefix: Relations whose name starts with this are skipped by
            the memoized engine
        union_discriminator: Key carrying the tag of a normalized union member
        id_fallback: Attribute read when an entity schema derives no identifier
        log_level: Level applied to the package loggers by `configure_logging`
    """
    memoized: bool = False
    private_prefix: str = Field(default="_", min_length=1)
    union_discriminator: str = Field(default="schema", min_length=1)
    id_fallback: str = Field(default="id", min_length=1)
    log_level: str = "WARNING"

    model_config = {"frozen": True}

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "DenormalizerConfig":
        """Build a config from DENORMALIZR_* environment variables."""
        load_dotenv(dotenv_path)
        defaults = cls()
        memoized = os.getenv("DENORMALIZR_MEMOIZED")
        return cls(
            memoized=defaults.memoized if memoized is None else memoized.strip().lower() in _TRUE_VALUES,
            private_prefix=os.getenv("DENORMALIZR_PRIVATE_PREFIX", defaults.private_prefix),
            union_discriminator=os.getenv("DENORMALIZR_UNION_DISCRIMINATOR", defaults.union_discriminator),
            id_fallback=os.getenv("DENORMALIZR_ID_FALLBACK", defaults.id_fallback),
            log_level=os.getenv("DENORMALIZR_LOG_LEVEL", defaults.log_level),
        )


DEFAULT_CONFIG = DenormalizerConfig()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply `level` (or the default config's) to every package logger."""
    level = (level or DEFAULT_CONFIG.log_level).upper()
    for name in PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(level)
