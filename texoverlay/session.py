"""Per-document preview state and the operations exposed to editors."""

from __future__ import annotations

import logging
import tempfile
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from texoverlay.fragments import locate_fragments
from texoverlay.host import Host
from texoverlay.pipeline import RenderPipeline

LOGGER = logging.getLogger(__name__)

_SCRATCH_DIR: Path | None = None


def scratch_directory(parent: str | None = None) -> Path:
    """Return the process-wide scratch directory, creating it on first use.

    It lives as long as the process; removing it is left to the system's
    temp cleanup.
    """
    global _SCRATCH_DIR
    if _SCRATCH_DIR is None or not _SCRATCH_DIR.is_dir():
        if parent:
            Path(parent).expanduser().mkdir(parents=True, exist_ok=True)
        _SCRATCH_DIR = Path(tempfile.mkdtemp(prefix="texoverlay-", dir=parent))
        LOGGER.debug("Created scratch directory %s", _SCRATCH_DIR)
    return _SCRATCH_DIR


def reset_scratch_directory() -> None:
    global _SCRATCH_DIR
    _SCRATCH_DIR = None


@dataclass
class DocumentSession:
    """One editing session: the host document plus its preview flag.

    `active_preview` is True exactly while whole-document previews are shown.
    Only the methods below write it.
    """

    host: Host
    pipeline: RenderPipeline
    active_preview: bool = False
    scratch_dir: Path | None = field(default=None, repr=False)

    @contextmanager
    def _host_guard(self) -> Iterator[None]:
        preserve_state = getattr(self.host, "preserve_state", None)
        with preserve_state() if callable(preserve_state) else nullcontext():
            yield

    def _ensure_scratch_dir(self) -> Path:
        self.scratch_dir = scratch_directory(self.pipeline.config.scratch_parent)
        return self.scratch_dir

    def _clear_annotations(self) -> None:
        # Prefer the host's dedicated fragment removal, fall back to a bulk clear.
        remove_fragments = getattr(self.host, "remove_fragment_annotations", None)
        if callable(remove_fragments):
            remove_fragments()
        else:
            self.host.clear_annotations()

    def preview(self) -> None:
        """Replace every fragment in the document with its rendered image."""
        with self._host_guard():
            self._clear_annotations()
            scratch_dir = self._ensure_scratch_dir()
            self.pipeline.render_at(self.host, scratch_dir, None)
            self.active_preview = True
        LOGGER.info("Preview active")

    def preview_region(self, beg: int, end: int) -> int:
        """Render fragments inside [beg, end) on top of what is shown.

        Leaves `active_preview` untouched, so a later toggle() follows the
        whole-document state only. Returns the number of fragments rendered.
        """
        if beg > end:
            raise ValueError(f"Region start {beg} is after its end {end}")
        if not self.active_preview:
            LOGGER.warning("Region preview on an inactive session; toggle() will still start a full preview")
        count = 0
        with self._host_guard():
            scratch_dir = self._ensure_scratch_dir()
            for fragment in locate_fragments(self.host.text(), beg, end):
                self.pipeline.render_at(self.host, scratch_dir, fragment)
                count += 1
        LOGGER.info("Rendered %d fragment(s) in region %d-%d", count, beg, end)
        return count

    def remove(self) -> None:
        """Drop all rendered images and show the source text again."""
        with self._host_guard():
            self._clear_annotations()
            self.active_preview = False
        LOGGER.info("Preview removed")

    def toggle(self) -> None:
        if self.active_preview:
            self.remove()
        else:
            self.preview()
