"""Pytest configuration and fixtures."""

import io
import os
import sys
import textwrap
from collections.abc import Callable

import pytest

from magickpipe.config.settings import MagickPipeSettings, get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep host env vars and config files out of the tests."""
    for key in list(os.environ):
        if key.startswith("MAGICKPIPE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_engine(tmp_path) -> Callable[..., str]:
    """Factory for executable Python scripts that stand in for ImageMagick.

    The body runs with ``sys`` and ``time`` imported and receives the engine
    arguments in ``sys.argv[1:]``.
    """
    if sys.platform == "win32":
        pytest.skip("fake engines rely on shebang scripts")

    def _make(body: str, name: str = "engine") -> str:
        script = tmp_path / f"{name}.py"
        script.write_text(
            f"#!{sys.executable}\nimport sys\nimport time\n{textwrap.dedent(body)}\n",
            encoding="utf-8",
        )
        script.chmod(0o755)
        return str(script)

    return _make


@pytest.fixture
def engine_settings() -> Callable[..., MagickPipeSettings]:
    """Factory for settings pointing at a given executable."""

    def _make(executable: str, **overrides) -> MagickPipeSettings:
        values = {"executable": executable, "exit_grace_period": 2.0, **overrides}
        return MagickPipeSettings(**values)

    return _make


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG image."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (400, 300), "red").save(buffer, format="PNG")
    return buffer.getvalue()
