"""Host-environment seam: text, font metrics and image annotations."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol


class Host(Protocol):
    """What texoverlay needs from an editor.

    A host removes annotations through either `remove_fragment_annotations()`
    or the bulk `clear_annotations()`; the session picks whichever exists.
    `preserve_state()` and `show_message()` are optional.
    """

    def text(self) -> str: ...

    def font_pixel_height(self) -> float: ...

    def add_image_annotation(self, start: int, end: int, image_path: Path, scale: float = 1.0) -> None: ...


@dataclass(frozen=True)
class Annotation:
    start: int
    end: int
    image_path: Path
    scale: float = 1.0


class MemoryHost:
    """Headless host keeping the document and its annotations in memory."""

    def __init__(self, text: str = "", font_px: float = 16.0, read_only: bool = False):
        self._text = text
        self.font_px = font_px
        self.read_only = read_only
        self.cursor = 0
        self.annotations: list[Annotation] = []
        self.messages: list[str] = []

    def text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        self._text = text

    def font_pixel_height(self) -> float:
        return self.font_px

    def add_image_annotation(self, start: int, end: int, image_path: Path, scale: float = 1.0) -> None:
        # Replace an annotation already anchored on the same span.
        self.annotations = [a for a in self.annotations if (a.start, a.end) != (start, end)]
        self.annotations.append(Annotation(start, end, Path(image_path), scale))

    def clear_annotations(self) -> None:
        self.annotations.clear()

    def show_message(self, text: str) -> None:
        self.messages.append(text)

    @contextmanager
    def preserve_state(self) -> Iterator[None]:
        cursor = self.cursor
        read_only = self.read_only
        try:
            yield
        finally:
            self.cursor = cursor
            self.read_only = read_only
