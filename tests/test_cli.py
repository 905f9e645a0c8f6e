"""Tests for the headless command-line path."""

from __future__ import annotations

import pytest

from texoverlay.cli import main, render_file


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in ("TEXOVERLAY_PROCESS", "TEXOVERLAY_FOREGROUND", "TEXOVERLAY_BACKGROUND", "TEXOVERLAY_TMPDIR"):
        monkeypatch.delenv(name, raising=False)


def test_render_file_with_standin_tools(tmp_path, standin_process):
    source = tmp_path / "notes.txt"
    source.write_text("a $x^2$ b $y$ c\n", encoding="utf-8")

    rendered = render_file(source, 20, tmp_path / "out", base_process=standin_process)

    assert [(start, end) for start, end, _image in rendered] == [(3, 6), (11, 12)]
    assert all(image.is_file() for _start, _end, image in rendered)
    assert all((tmp_path / "out").resolve() in image.parents for _start, _end, image in rendered)


def test_missing_path(tmp_path, capsys):
    assert main([str(tmp_path / "absent.txt"), "--render"]) == 2
    assert "does not exist" in capsys.readouterr().err


def test_directory_path(tmp_path, capsys):
    assert main([str(tmp_path), "--render"]) == 2
    assert "is a directory" in capsys.readouterr().err


def test_render_needs_a_file(capsys):
    assert main(["--render"]) == 2
    assert "--render needs a file" in capsys.readouterr().err


def test_render_failure_exit_code(tmp_path, capsys, monkeypatch):
    source = tmp_path / "notes.txt"
    source.write_text("Energy: $E=mc^2$.\n", encoding="utf-8")
    monkeypatch.setenv("PATH", str(tmp_path / "empty-bin"))

    assert main([str(source), "--render", "--font-px", "20", "--output", str(tmp_path / "out")]) == 1
    assert "Render failed" in capsys.readouterr().err


def test_render_bad_font_height(tmp_path, capsys):
    source = tmp_path / "notes.txt"
    source.write_text("Energy: $E=mc^2$.\n", encoding="utf-8")

    assert main([str(source), "--render", "--font-px", "0", "--output", str(tmp_path / "out")]) == 1
    assert "must be positive" in capsys.readouterr().err
