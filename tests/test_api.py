import json

import pytest
from PIL import Image

from fractal_engine.api import BatchRenderer, FractalRenderer, RenderConfig
from fractal_engine.core.exceptions import InvalidParameterError
from fractal_engine.core.fractal_types import FractalRequest, FractalVariant
from fractal_engine.rendering.image_output import ImageExporter

RECORDS = [
    {"Seed": 0, "Width": 8, "Height": 6, "Fractal": 0, "MaxIterations": 10},
    {"Seed": 1, "Width": 8, "Height": 6, "Fractal": 99},
    {"Seed": 2, "Width": 0, "Height": 6, "Fractal": 0},
    {"Seed": 3, "Width": 16, "Height": 16, "Fractal": 4, "MaxIterations": 200},
]


def make_batch(tmp_path, **config):
    batch = BatchRenderer(RenderConfig(output_dir=tmp_path, **config))
    for record in RECORDS:
        batch.add_record(record)
    return batch


def test_render_config_validation():
    with pytest.raises(InvalidParameterError):
        RenderConfig(image_format='gif').validate()
    with pytest.raises(InvalidParameterError):
        RenderConfig(processes=0).validate()

    config = RenderConfig(output_dir='out', image_format='.PNG')
    config.validate()
    assert config.image_format == 'png'
    assert config.output_dir.name == 'out'


def test_render_to_file_uses_naming_convention(tmp_path):
    renderer = FractalRenderer(RenderConfig(output_dir=tmp_path))
    request = FractalRequest(FractalVariant.MENGER_SPONGE, 27, 9, max_iterations=2,
                             seed=5, request_id=4)

    path = renderer.render_to_file(request)

    assert path == tmp_path / "fractal_4_seed_5.bmp"
    with Image.open(path) as image:
        assert image.format == "BMP"
        assert image.size == (27, 9)
        assert image.getpixel((1, 1)) == (255, 255, 255)
        assert image.getpixel((0, 0)) == (0, 0, 0)


def test_render_writes_metadata_when_enabled(tmp_path):
    renderer = FractalRenderer(RenderConfig(output_dir=tmp_path, image_format='png',
                                            save_metadata=True))
    request = FractalRequest(FractalVariant.BARNSLEY_FERN, 20, 20, max_iterations=500, seed=9)

    path = renderer.render_to_file(request)

    assert path.suffix == ".png"
    metadata = ImageExporter().load_metadata(path)
    assert metadata.fractal_type == "barnsley_fern"
    assert metadata.resolution == (20, 20)
    assert metadata.seed == 9
    assert metadata.seeded is True

    sidecar = json.loads(path.with_suffix(".json").read_text())
    assert sidecar["fractal_parameters"]["max_iterations"] == 500


def test_batch_isolates_failures(tmp_path):
    batch = make_batch(tmp_path)
    progress = []

    results = batch.run_batch(lambda done, total, result: progress.append((done, total)))

    assert [r['status'] for r in results] == ['completed', 'skipped', 'failed', 'completed']
    assert progress == [(1, 4), (2, 4), (3, 4), (4, 4)]
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "fractal_0_seed_0.bmp", "fractal_3_seed_3.bmp",
    ]

    summary = batch.get_summary()
    assert summary['total_jobs'] == 4
    assert summary['completed'] == 2
    assert summary['failed'] == 1
    assert summary['skipped'] == 1
    assert summary['success_rate'] == 0.5


def test_summary_before_run():
    assert BatchRenderer().get_summary() == {'status': 'not_run'}


def test_unwritable_output_fails_only_that_job(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    batch = BatchRenderer(RenderConfig(output_dir=blocker / "out"))
    batch.add_request(FractalRequest(FractalVariant.HILBERT_CURVE, 8, 8, max_iterations=2))
    results = batch.run_batch()

    assert results[0]['status'] == 'failed'
    assert batch.get_summary()['failed'] == 1


def test_render_failure_is_reported(tmp_path):
    batch = BatchRenderer(RenderConfig(output_dir=tmp_path))
    batch.add_request(FractalRequest(FractalVariant.LYAPUNOV, 4, 4, max_iterations=50))
    batch.add_request(FractalRequest(FractalVariant.MANDELBROT, 4, 4, max_iterations=5,
                                     request_id=1))

    results = batch.run_batch()

    assert [r['status'] for r in results] == ['failed', 'completed']
    assert "100" in results[0]['error']


def test_parallel_batch_matches_serial(tmp_path):
    serial_dir = tmp_path / "serial"
    parallel_dir = tmp_path / "parallel"

    make_batch(serial_dir).run_batch()
    results = make_batch(parallel_dir, processes=2).run_batch()

    assert [r['status'] for r in results] == ['completed', 'skipped', 'failed', 'completed']
    for name in ("fractal_0_seed_0.bmp", "fractal_3_seed_3.bmp"):
        assert (serial_dir / name).read_bytes() == (parallel_dir / name).read_bytes()


def test_parallel_worker_errors_fail_their_job(tmp_path):
    batch = BatchRenderer(RenderConfig(output_dir=tmp_path, processes=2))
    batch.add_request(FractalRequest(FractalVariant.LYAPUNOV, 4, 4, max_iterations=50))
    batch.add_request(FractalRequest(FractalVariant.TRICORN, 4, 4, max_iterations=5,
                                     request_id=1))

    results = batch.run_batch()

    assert [r['status'] for r in results] == ['failed', 'completed']


def test_render_config_coerces_and_rejects_values():
    config = RenderConfig(processes="2")
    config.validate()
    assert config.processes == 2

    with pytest.raises(InvalidParameterError):
        RenderConfig(processes="many").validate()
    with pytest.raises(InvalidParameterError):
        RenderConfig(image_format=5).validate()


@pytest.mark.parametrize("record", ["oops", 5, ["Width", 8]])
def test_non_mapping_record_fails_only_its_job(tmp_path, record):
    batch = BatchRenderer(RenderConfig(output_dir=tmp_path))
    batch.add_record(record)
    batch.add_record({"Seed": 1, "Width": 8, "Height": 8, "Fractal": 0, "MaxIterations": 5})

    results = batch.run_batch()

    assert [r['status'] for r in results] == ['failed', 'completed']
    assert "mapping" in results[0]['error']
    assert (tmp_path / "fractal_1_seed_1.bmp").exists()
