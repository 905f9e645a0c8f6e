"""Drive one render pass through the toolchain."""

from __future__ import annotations

import enum
import inspect
import logging
from dataclasses import replace
from pathlib import Path

from texoverlay.config import RendererConfig
from texoverlay.converter import build_converter_command
from texoverlay.errors import ToolchainArityMismatch
from texoverlay.fragments import Fragment
from texoverlay.host import Host
from texoverlay.resolution import estimate_resolution
from texoverlay.toolchain import DEFAULT_PROCESS, ProcessDescriptor

LOGGER = logging.getLogger(__name__)


class CallStrategy(enum.Enum):
    """How a toolchain's `format_fragments` wants to be called."""

    # (host, prefix, directory, method, message, restrict)
    FULL = "full"
    # (host, prefix, method, message): no directory argument, always whole document
    REDUCED = "reduced"


_STRATEGY_CACHE: dict[object, CallStrategy] = {}
_PROBE_ARGS = (None, "prefix", "directory", "method", "message", None)


def reset_call_strategy_cache() -> None:
    _STRATEGY_CACHE.clear()


def negotiate_call_strategy(format_fragments) -> CallStrategy:
    """Probe the entry point's signature once and remember the answer."""
    key = getattr(format_fragments, "__func__", format_fragments)
    cached = _STRATEGY_CACHE.get(key)
    if cached is not None:
        return cached

    try:
        signature = inspect.signature(format_fragments)
    except (TypeError, ValueError):
        # Nothing to inspect (e.g. a C callable); assume the current signature.
        strategy = CallStrategy.FULL
    else:
        full_args = _PROBE_ARGS
        reduced_args = (_PROBE_ARGS[0], _PROBE_ARGS[1], _PROBE_ARGS[3], _PROBE_ARGS[4])
        if _binds(signature, full_args):
            strategy = CallStrategy.FULL
        elif _binds(signature, reduced_args):
            strategy = CallStrategy.REDUCED
        else:
            raise ToolchainArityMismatch(f"Toolchain entry point has an unsupported signature: {signature}")

    LOGGER.debug("Toolchain call strategy: %s", strategy.value)
    _STRATEGY_CACHE[key] = strategy
    return strategy


def _binds(signature: inspect.Signature, args: tuple) -> bool:
    try:
        signature.bind(*args)
    except TypeError:
        return False
    return True


class RenderPipeline:
    """Install a fresh converter, then hand the target to the toolchain."""

    def __init__(self, toolchain, config: RendererConfig | None = None, base_process: ProcessDescriptor = DEFAULT_PROCESS):
        self.toolchain = toolchain
        self.config = config or RendererConfig()
        self.base_process = base_process

    def install_converter(self, host: Host) -> ProcessDescriptor:
        """Rebuild the converter for the host's current font and make it the default process."""
        resolution = estimate_resolution(host)
        commands = tuple(build_converter_command(resolution, template) for template in self.base_process.image_converter)
        descriptor = replace(self.base_process, image_converter=commands)
        self.toolchain.register_process(self.config.process_name, descriptor)
        self.toolchain.set_default_process(self.config.process_name)
        LOGGER.debug("Converter for %s: %s", self.config.process_name, " && ".join(commands))
        return descriptor

    def render_at(self, host: Host, scratch_dir: Path, target: Fragment | None = None) -> None:
        """Render `target`, or the whole document when it is None."""
        self.install_converter(host)
        strategy = negotiate_call_strategy(self.toolchain.format_fragments)
        config = self.config

        if strategy is CallStrategy.FULL:
            restrict = (target.delimiter, target.start) if target is not None else None
            self.toolchain.format_fragments(host, config.file_prefix, scratch_dir, config.method, config.message, restrict)
            return

        if target is not None:
            LOGGER.debug("Toolchain cannot restrict to one fragment; rendering the whole document")
        # Without a directory argument the prefix has to carry the location.
        prefix = str(Path(scratch_dir) / config.file_prefix)
        self.toolchain.format_fragments(host, prefix, config.method, config.message)
