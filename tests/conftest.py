import pytest
from pathlib import Path
from PIL import Image

from focal_crop.image_io import RasterSource


def make_gradient(width: int, height: int) -> Image.Image:
    """RGB image whose red channel encodes x and green channel encodes y."""
    img = Image.new("RGB", (width, height))
    img.putdata([
        (x * 255 // max(1, width - 1), y * 255 // max(1, height - 1), 128)
        for y in range(height)
        for x in range(width)
    ])
    return img


@pytest.fixture
def wide_image() -> Image.Image:
    """200×100 gradient (ratio 2.0)."""
    return make_gradient(200, 100)


@pytest.fixture
def tall_image() -> Image.Image:
    """100×200 gradient (ratio 0.5)."""
    return make_gradient(100, 200)


@pytest.fixture
def wide_source(wide_image) -> RasterSource:
    return RasterSource(wide_image, name="wide.png")


@pytest.fixture
def sample_png(tmp_path: Path, wide_image) -> Path:
    """The wide gradient saved as a PNG file."""
    path = tmp_path / "sample.png"
    wide_image.save(path)
    return path


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch):
    """Keep ratios.json writes out of the real user config directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "config"))
