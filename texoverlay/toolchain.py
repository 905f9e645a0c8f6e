"""The latex -> dvips -> convert chain that turns one fragment into an image."""

from __future__ import annotations

import hashlib
import logging
import re
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from texoverlay.config import ANNOTATION_METHOD, DEFAULT_PROCESS_NAME, RESOLUTION_PLACEHOLDER, RendererConfig
from texoverlay.converter import CONVERTER_TEMPLATE
from texoverlay.errors import ToolchainExecutionError
from texoverlay.fragments import Fragment, fragment_at, locate_fragments
from texoverlay.host import Host

LOGGER = logging.getLogger(__name__)

_SPECIFIER_RE = re.compile(r"%([fboO])")


@dataclass(frozen=True)
class ProcessDescriptor:
    """One entry of the process table: which programs run, and how."""

    programs: tuple[str, ...]
    description: str
    message: str
    image_input_type: str
    image_output_type: str
    image_size_adjust: tuple[float, float]
    latex_compiler: tuple[str, ...]
    image_converter: tuple[str, ...]


DEFAULT_PROCESS = ProcessDescriptor(
    programs=("latex", "dvips", "convert"),
    description="dvi > ps > png",
    message="you need to install the programs: latex, dvips and imagemagick.",
    image_input_type="ps",
    image_output_type="png",
    image_size_adjust=(1.0, 1.0),
    latex_compiler=(
        "latex -interaction nonstopmode -output-directory %o %f",
        "dvips %b.dvi -o %b.ps",
    ),
    image_converter=(CONVERTER_TEMPLATE,),
)


def _extract_latex_error_details(output_text: str) -> str:
    """Reduce LaTeX/ImageMagick output to the lines worth showing."""
    raw = (output_text or "").replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.strip() for line in raw.split("\n") if line.strip()]
    if not lines:
        return "no output"

    # TeX marks errors with a leading "!" and follows with "l.<n>" context.
    error_lines = [line for line in lines if line.startswith("!") or line.startswith("l.")]
    if error_lines:
        return "\n".join(error_lines[:6])
    return "\n".join(lines[-8:])


class LatexToolchain:
    """Compile fragments with the configured process and annotate the host."""

    def __init__(self, config: RendererConfig | None = None, processes: dict[str, ProcessDescriptor] | None = None):
        self.config = config or RendererConfig()
        self.processes: dict[str, ProcessDescriptor] = dict(processes or {DEFAULT_PROCESS_NAME: DEFAULT_PROCESS})
        self.default_process = next(iter(self.processes))

    def register_process(self, name: str, descriptor: ProcessDescriptor) -> None:
        self.processes[name] = descriptor

    def set_default_process(self, name: str) -> None:
        if name not in self.processes:
            raise ValueError(f"Unknown process: {name!r}")
        self.default_process = name

    def descriptor(self, name: str | None = None) -> ProcessDescriptor:
        key = name or self.default_process
        try:
            return self.processes[key]
        except KeyError:
            raise ValueError(f"Unknown process: {key!r}") from None

    def missing_programs(self, name: str | None = None) -> list[str]:
        return [program for program in self.descriptor(name).programs if shutil.which(program) is None]

    def format_fragments(
        self,
        host: Host,
        prefix: str,
        directory: Path | str,
        method: str,
        message: str,
        restrict: tuple[str, int] | None = None,
    ) -> list[Path]:
        """Render fragments of the host text and attach them as annotations.

        With `restrict=(delimiter, position)` only the fragment around that
        position is rendered; otherwise every fragment in the document is.
        """
        if method != ANNOTATION_METHOD:
            raise ValueError(f"Unsupported annotation method: {method!r}")

        text = host.text()
        if restrict is not None:
            delimiter, position = restrict
            found = fragment_at(text, position, delimiter)
            fragments = [found] if found is not None else []
        else:
            fragments = list(locate_fragments(text))
        if not fragments:
            return []

        descriptor = self.descriptor()
        missing = self.missing_programs()
        if missing:
            LOGGER.warning("Missing programs for %s: %s", self.default_process, ", ".join(missing))
            raise ToolchainExecutionError(
                f"Cannot render with process {self.default_process!r}",
                details=descriptor.message,
            )

        LOGGER.info(message)
        show_message = getattr(host, "show_message", None)
        if callable(show_message):
            show_message(message)

        work_dir = Path(directory).expanduser().resolve()
        work_dir.mkdir(parents=True, exist_ok=True)
        images: list[Path] = []
        for fragment in fragments:
            image = self._render_fragment(descriptor, fragment, text, work_dir, prefix)
            host.add_image_annotation(fragment.start, fragment.end, image, descriptor.image_size_adjust[0])
            images.append(image)
        return images

    def _snippet_document(self, source: str) -> str:
        parts = [self.config.latex_header.rstrip("\n"), r"\begin{document}"]
        if self.config.background.lower() != "transparent":
            parts.append(rf"\pagecolor{{{self.config.background}}}")
        parts.append(rf"{{\color{{{self.config.foreground}}} {source}}}")
        parts.append(r"\end{document}")
        return "\n".join(parts) + "\n"

    def _render_fragment(
        self, descriptor: ProcessDescriptor, fragment: Fragment, text: str, work_dir: Path, prefix: str
    ) -> Path:
        document = self._snippet_document(fragment.source(text))
        # The converter command carries the resolution, so a font change
        # yields a new file name rather than a stale image.
        key_material = "\0".join((document, *descriptor.latex_compiler, *descriptor.image_converter))
        digest = hashlib.sha1(key_material.encode("utf-8", errors="replace")).hexdigest()
        base = work_dir / f"{prefix}_{digest}"
        output = Path(f"{base}.{descriptor.image_output_type}")
        if output.is_file():
            LOGGER.debug("Reusing %s", output.name)
            return output

        source_path = Path(f"{base}.tex")
        source_path.write_text(document, encoding="utf-8")
        for template in (*descriptor.latex_compiler, *descriptor.image_converter):
            self._run(self._expand(template, source_path, base, work_dir, output), work_dir)

        if not output.is_file():
            raise ToolchainExecutionError(f"Toolchain produced no image for {fragment.source(text)!r}")
        return output

    @staticmethod
    def _expand(template: str, source_path: Path, base: Path, work_dir: Path, output: Path) -> str:
        if RESOLUTION_PLACEHOLDER in template:
            raise ValueError(f"Unresolved resolution placeholder in command: {template!r}")
        values = {
            "f": shlex.quote(str(source_path)),
            "b": shlex.quote(str(base)),
            "o": shlex.quote(str(work_dir)),
            "O": shlex.quote(str(output)),
        }
        return _SPECIFIER_RE.sub(lambda match: values[match.group(1)], template)

    @staticmethod
    def _run(command: str, work_dir: Path) -> None:
        LOGGER.debug("Running: %s", command)
        result = subprocess.run(
            command,
            shell=True,
            cwd=str(work_dir),
            text=True,
            capture_output=True,
            check=False,
        )
        if result.returncode != 0:
            details = _extract_latex_error_details(result.stderr or result.stdout or "")
            raise ToolchainExecutionError(
                f"Command exited with status {result.returncode}",
                command=command,
                returncode=result.returncode,
                details=details,
            )
