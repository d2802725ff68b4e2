from __future__ import annotations

from typing import Optional


class FrameDataError(Exception):
    """Base class for everything this package raises on purpose."""


class MalformedMarkup(FrameDataError):
    """A table or heading that does not match any known shape. Skipped by the page walk."""


class IncompleteExtraction(FrameDataError):
    def __init__(self, character: str, size: int, minimum: int):
        super().__init__(f"record for {character!r} is too small ({size} bytes < {minimum}), likely incomplete")
        self.character = character
        self.size = size
        self.minimum = minimum


class MalformedRecord(FrameDataError):
    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(f"{source}: {message}" if source else message)
        self.source = source


class CorpusLoadFailure(FrameDataError):
    pass
