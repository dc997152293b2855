import pytest

from fractal_engine.core.pixel_grid import GREEN, PixelGrid
from fractal_engine.rendering.image_output import ImageExporter, RenderMetadata, output_filename


@pytest.fixture
def grid():
    return PixelGrid(6, 4, background=GREEN).freeze()


def test_output_filename():
    assert output_filename(0, 1) == "fractal_0_seed_1.bmp"
    assert output_filename(12, -3, ".png") == "fractal_12_seed_-3.png"


@pytest.mark.parametrize("suffix, image_format", [(".bmp", "BMP"), (".png", "PNG"),
                                                  (".tif", "TIFF")])
def test_save_grid_formats(tmp_path, grid, suffix, image_format):
    exporter = ImageExporter()
    path = exporter.save_grid(grid, tmp_path / f"image{suffix}")

    info = exporter.get_image_info(path)
    assert info['format'] == image_format
    assert info['dimensions'] == (6, 4)
    assert info['mode'] == 'RGB'
    assert info['has_fractal_metadata'] is False


def test_unsupported_suffix(tmp_path, grid):
    with pytest.raises(ValueError):
        ImageExporter().save_grid(grid, tmp_path / "image.gif")
    assert not (tmp_path / "image.gif").exists()


def test_missing_directory_raises_os_error(tmp_path, grid):
    with pytest.raises(OSError):
        ImageExporter().save_grid(grid, tmp_path / "missing" / "image.bmp")


def test_metadata_round_trip(tmp_path, grid):
    metadata = RenderMetadata(fractal_type="tricorn", resolution=(6, 4), max_iterations=1000,
                              seed=3, seeded=True, render_time_seconds=0.25)
    exporter = ImageExporter()
    path = exporter.save_grid(grid, tmp_path / "image.bmp", metadata)

    loaded = exporter.load_metadata(path)
    assert loaded == metadata
    assert exporter.get_image_info(path)['fractal_metadata']['seed'] == 3


def test_missing_image_info(tmp_path):
    with pytest.raises(FileNotFoundError):
        ImageExporter().get_image_info(tmp_path / "nothing.bmp")
