"""Shared fixtures for texoverlay tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from texoverlay.config import RendererConfig
from texoverlay.errors import ToolchainExecutionError
from texoverlay.fragments import fragment_at, locate_fragments
from texoverlay.host import MemoryHost
from texoverlay.pipeline import RenderPipeline, reset_call_strategy_cache
from texoverlay.session import DocumentSession, reset_scratch_directory
from texoverlay.toolchain import ProcessDescriptor


@pytest.fixture(autouse=True)
def _fresh_process_state():
    reset_scratch_directory()
    reset_call_strategy_cache()
    yield
    reset_scratch_directory()
    reset_call_strategy_cache()


@pytest.fixture
def config(tmp_path: Path) -> RendererConfig:
    return RendererConfig(scratch_parent=str(tmp_path / "scratch"))


class FakeToolchain:
    """Records calls; 'renders' by pointing annotations at made-up paths."""

    def __init__(self, fail_after: int | None = None):
        self.processes: dict[str, ProcessDescriptor] = {}
        self.default_process: str | None = None
        self.calls: list[dict] = []
        self.rendered = 0
        self.fail_after = fail_after

    def register_process(self, name, descriptor):
        self.processes[name] = descriptor

    def set_default_process(self, name):
        self.default_process = name

    def _annotate(self, host, fragments, directory, prefix):
        for fragment in fragments:
            if self.fail_after is not None and self.rendered >= self.fail_after:
                raise ToolchainExecutionError("Command exited with status 1", command="latex", returncode=1)
            host.add_image_annotation(fragment.start, fragment.end, Path(directory) / f"{prefix}_{fragment.start}.png")
            self.rendered += 1

    def format_fragments(self, host, prefix, directory, method, message, restrict=None):
        self.calls.append(
            {"prefix": prefix, "directory": directory, "method": method, "message": message, "restrict": restrict}
        )
        text = host.text()
        if restrict is not None:
            found = fragment_at(text, restrict[1], restrict[0])
            fragments = [found] if found is not None else []
        else:
            fragments = list(locate_fragments(text))
        self._annotate(host, fragments, directory, prefix)


class LegacyToolchain(FakeToolchain):
    """Older entry point: no directory and no per-fragment restriction."""

    def format_fragments(self, host, prefix, method, message):
        self.calls.append({"prefix": prefix, "method": method, "message": message})
        self._annotate(host, list(locate_fragments(host.text())), Path(prefix).parent, Path(prefix).name)


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def legacy_toolchain() -> LegacyToolchain:
    return LegacyToolchain()


@pytest.fixture
def make_session(config):
    def factory(text: str, toolchain=None, font_px: float = 20.0, host=None) -> DocumentSession:
        host = host if host is not None else MemoryHost(text, font_px=font_px)
        pipeline = RenderPipeline(toolchain if toolchain is not None else FakeToolchain(), config)
        return DocumentSession(host, pipeline)

    return factory


@pytest.fixture
def standin_process() -> ProcessDescriptor:
    """Shell commands standing in for latex/dvips/convert."""
    return ProcessDescriptor(
        programs=("sh", "cat", "cp"),
        description="tex > copy > png",
        message="you need a POSIX shell.",
        image_input_type="copy",
        image_output_type="png",
        image_size_adjust=(1.5, 1.5),
        latex_compiler=("echo run >> %o/runs.log && cat %f > %b.copy",),
        image_converter=("echo %D > %b.density && cp %b.copy %O",),
    )
