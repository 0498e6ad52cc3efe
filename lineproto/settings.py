"""
Environment configuration for the stream readers.

Read through python-decouple, so values come from the process environment
or a .env / settings.ini file:

- LINEPROTO_CHUNK_SIZE: bytes requested per read (default: 65536)
- LINEPROTO_MAX_BUFFER: longest unterminated line kept in memory, in bytes;
  0 disables the limit (default: 1048576)
"""

from dataclasses import dataclass
from typing import Optional

from decouple import config

DEFAULT_CHUNK_SIZE = 65536
DEFAULT_MAX_BUFFER = 1024 * 1024


@dataclass(frozen=True)
class Settings:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_buffer: Optional[int] = DEFAULT_MAX_BUFFER

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive, got %r" % (self.chunk_size,))
        if self.max_buffer is not None and self.max_buffer <= 0:
            raise ValueError("max_buffer must be positive or None, got %r" % (self.max_buffer,))

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the environment."""
        chunk_size = config("LINEPROTO_CHUNK_SIZE", default=DEFAULT_CHUNK_SIZE, cast=int)
        max_buffer = config("LINEPROTO_MAX_BUFFER", default=DEFAULT_MAX_BUFFER, cast=int)
        return cls(chunk_size=chunk_size, max_buffer=max_buffer or None)

    def override(self, chunk_size=None, max_buffer=None) -> "Settings":
        """
        Return a copy with the given values replaced when they are not None.

        A max_buffer of 0 removes the limit.
        """
        return Settings(
            chunk_size=self.chunk_size if chunk_size is None else chunk_size,
            max_buffer=self.max_buffer if max_buffer is None else (max_buffer or None),
        )
