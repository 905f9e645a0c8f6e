"""Exception types raised by texoverlay."""

from __future__ import annotations


class TexOverlayError(RuntimeError):
    """Base class for all texoverlay failures."""


class HostMetricsError(TexOverlayError):
    """The host reported a font height that cannot drive a render."""


class ToolchainArityMismatch(TexOverlayError, TypeError):
    """The toolchain entry point accepts neither known call signature."""


class ToolchainExecutionError(TexOverlayError):
    """An external compile, rasterize or trim step failed."""

    def __init__(self, message: str, command: str | None = None, returncode: int | None = None, details: str = ""):
        self.command = command
        self.returncode = returncode
        self.details = details
        text = message
        if details:
            text = f"{message}: {details}"
        super().__init__(text)
