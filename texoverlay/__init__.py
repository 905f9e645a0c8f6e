"""texoverlay: render inline TeX math as images over the source text."""

from __future__ import annotations

from texoverlay.config import RendererConfig, load_config
from texoverlay.converter import build_converter_command
from texoverlay.errors import (
    HostMetricsError,
    TexOverlayError,
    ToolchainArityMismatch,
    ToolchainExecutionError,
)
from texoverlay.fragments import Fragment, locate_fragments
from texoverlay.host import MemoryHost
from texoverlay.pipeline import CallStrategy, RenderPipeline
from texoverlay.resolution import estimate_resolution
from texoverlay.session import DocumentSession
from texoverlay.toolchain import LatexToolchain, ProcessDescriptor

__version__ = "0.3.0"

__all__ = [
    "CallStrategy",
    "DocumentSession",
    "Fragment",
    "HostMetricsError",
    "LatexToolchain",
    "MemoryHost",
    "ProcessDescriptor",
    "RenderPipeline",
    "RendererConfig",
    "TexOverlayError",
    "ToolchainArityMismatch",
    "ToolchainExecutionError",
    "build_converter_command",
    "estimate_resolution",
    "load_config",
    "locate_fragments",
]
