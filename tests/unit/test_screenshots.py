import base64
from pathlib import Path

import pytest

from runlens.aggregator.screenshots import embed_screenshot
from tests.conftest import PNG_BYTES


@pytest.mark.unit
class TestEmbedScreenshot:
    def test_png_data_url(self, tmp_path: Path) -> None:
        path = tmp_path / "shot.png"
        path.write_bytes(PNG_BYTES)
        url = embed_screenshot(path)
        assert url.startswith("data:image/png;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == PNG_BYTES

    @pytest.mark.parametrize(
        ("name", "mime"),
        [("a.jpg", "image/jpeg"), ("a.JPEG", "image/jpeg"), ("a.gif", "image/gif"), ("a.bin", "image/png")],
    )
    def test_mime_from_extension(self, tmp_path: Path, name: str, mime: str) -> None:
        path = tmp_path / name
        path.write_bytes(b"x")
        assert embed_screenshot(str(path)).startswith(f"data:{mime};base64,")

    def test_empty_path(self) -> None:
        assert embed_screenshot("") == ""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert embed_screenshot(tmp_path / "gone.png") == ""

    def test_unusable_path_is_empty(self) -> None:
        assert embed_screenshot("shots/bad\x00name.png") == ""
