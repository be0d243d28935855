"""Fixtures for devicegen pipeline tests: generator wiring on tmp_path."""

from __future__ import annotations

import pytest

from devicegen.generator import DevicePageGenerator


@pytest.fixture
def generator(tmp_path, fake_source, introspector) -> DevicePageGenerator:
    return DevicePageGenerator(
        fake_source,
        output_dir=tmp_path / "src" / "pages" / "devices",
        types_dir=tmp_path / "src" / "types" / "generated",
        introspector=introspector,
    )
