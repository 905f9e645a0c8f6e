"""Renderer settings: built-in defaults, ~/.texoverlay.cfg, then environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

CONFIG_FILE_NAME = ".texoverlay.cfg"

# The first toolchain stage lays pages out in PostScript points at 72 per inch
# and typesets the snippet at a 10pt body size.
BASE_DPI = 72.0
GLYPH_PT_REF = 10.0
RESOLUTION_PLACEHOLDER = "%D"

DEFAULT_PROCESS_NAME = "texoverlay"
FILE_PREFIX = "texoverlay"
ANNOTATION_METHOD = "overlay"
PROGRESS_MESSAGE = "Creating images for TeX fragments... (this may take a while)"

DEFAULT_LATEX_HEADER = r"""\documentclass{article}
\usepackage[usenames]{color}
\usepackage{amsmath}
\usepackage{amssymb}
\pagestyle{empty}
"""

_ENV_OVERRIDES = {
    "TEXOVERLAY_PROCESS": "process_name",
    "TEXOVERLAY_FOREGROUND": "foreground",
    "TEXOVERLAY_BACKGROUND": "background",
    "TEXOVERLAY_TMPDIR": "scratch_parent",
}


@dataclass(frozen=True)
class RendererConfig:
    """Everything a render pass needs except the per-call resolution."""

    process_name: str = DEFAULT_PROCESS_NAME
    file_prefix: str = FILE_PREFIX
    method: str = ANNOTATION_METHOD
    message: str = PROGRESS_MESSAGE
    foreground: str = "black"
    background: str = "Transparent"
    latex_header: str = DEFAULT_LATEX_HEADER
    scratch_parent: str | None = None


def _config_file_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def _parse_config_lines(raw: str) -> dict[str, str]:
    """Parse `key = value` lines, ignoring blanks and `#` comments."""
    values: dict[str, str] = {}
    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        values[key.strip().lower()] = value.strip()
    return values


def _read_config_file(cfg_path: Path) -> dict[str, str]:
    try:
        if not cfg_path.is_file():
            return {}
        return _parse_config_lines(cfg_path.read_text(encoding="utf-8"))
    except Exception:
        # Any read/decode/access issue should fall back to built-in defaults.
        return {}


def _read_header_file(value: str) -> str | None:
    candidate = Path(value).expanduser()
    try:
        if candidate.is_file():
            return candidate.read_text(encoding="utf-8")
    except Exception:
        return None
    return None


def load_config(cfg_path: Path | None = None, environ: dict[str, str] | None = None) -> RendererConfig:
    """Resolve the effective renderer settings."""
    if environ is None:
        environ = dict(os.environ)
    known = {field.name for field in fields(RendererConfig)}
    overrides: dict[str, str] = {}

    file_values = _read_config_file(cfg_path if cfg_path is not None else _config_file_path())
    for key, value in file_values.items():
        if key == "latex_header_file":
            header = _read_header_file(value)
            if header is not None:
                overrides["latex_header"] = header
        elif key in known and key != "latex_header":
            overrides[key] = value

    for env_name, field_name in _ENV_OVERRIDES.items():
        value = environ.get(env_name, "").strip()
        if value:
            overrides[field_name] = value
    header_env = environ.get("TEXOVERLAY_LATEX_HEADER", "").strip()
    if header_env:
        header = _read_header_file(header_env)
        if header is not None:
            overrides["latex_header"] = header

    return replace(RendererConfig(), **overrides)
