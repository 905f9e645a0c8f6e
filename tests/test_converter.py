"""Tests for the rasterize + trim command builder."""

from __future__ import annotations

from texoverlay.converter import CONVERTER_TEMPLATE, build_converter_command


def test_resolution_replaces_placeholder():
    command = build_converter_command(144)

    assert command == "convert -density 144 -trim -antialias %b.ps -quality 100 %O && rm %b.ps"
    assert command.count("144") == 1
    assert "%D" not in command


def test_only_placeholder_changes():
    command = build_converter_command(300)
    position = CONVERTER_TEMPLATE.index("%D")

    assert command[position:position + 3] == "300"
    assert command[:position] + command[position + 3:] == CONVERTER_TEMPLATE.replace("%D", "", 1)


def test_other_specifiers_survive():
    command = build_converter_command(96)
    assert "%b.ps" in command
    assert "%O" in command


def test_custom_template():
    assert build_converter_command(72, "magick -density %D %f %O") == "magick -density 72 %f %O"
    assert build_converter_command(1, "no placeholder here") == "no placeholder here"
