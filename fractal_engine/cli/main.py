"""
Command-line interface for fractal generation.

Renders every record of a configuration file to its own bitmap, or a single
fractal given on the command line.
"""

import click
import sys
from pathlib import Path
import logging
import time

from .. import __version__
from ..api import FractalRenderer, RenderConfig, BatchRenderer
from ..core.exceptions import FractalError
from ..core.fractal_types import FractalRegistry, FractalRequest, FractalVariant, JULIA_PRESETS
from ..io.config import ConfigManager

logger = logging.getLogger(__name__)

VARIANT_NAMES = [variant.slug for variant in FractalVariant]


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    Fractal Engine - render fractal bitmaps from parameter lists.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Fractal Engine v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('config_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output-dir', '-o', type=click.Path(file_okay=False),
              help='Output directory (overrides the Render section)')
@click.option('--processes', '-p', type=int, help='Worker processes (1 renders serially)')
@click.option('--format', 'image_format', type=click.Choice(['bmp', 'png', 'tiff']),
              help='Image format')
@click.option('--unseeded', is_flag=True,
              help='Do not seed the stochastic fractals from Seed (non-reproducible output)')
@click.option('--metadata', is_flag=True, help='Write a JSON metadata file per image')
@click.option('--dry-run', is_flag=True, help='Show what would be rendered without rendering')
@click.pass_context
def batch(ctx, config_file, output_dir, processes, image_format, unseeded, metadata, dry_run):
    """
    Render every record of a configuration file.

    CONFIG_FILE: JSON or YAML file with a FractalConfigurations list
    """
    try:
        manager = ConfigManager()
        config_dict = manager.load_config(config_file)
        render_config = manager.create_render_config(
            config_dict,
            output_dir=output_dir,
            processes=processes,
            image_format=image_format,
            seeded=False if unseeded else None,
            save_metadata=metadata or None,
        )

        batch_renderer = BatchRenderer(render_config)
        for record in manager.get_records(config_dict):
            batch_renderer.add_record(record)

        if dry_run:
            for job in batch_renderer.jobs:
                request = job['request']
                if request is None:
                    click.echo(f"Would skip: {job['job_name']} ({job['error']})")
                else:
                    path = batch_renderer.renderer.output_path(request)
                    click.echo(f"Would render: {request.variant.slug} "
                               f"{request.width}x{request.height} -> {path}")
            click.echo(f"Dry run complete. {len(batch_renderer.jobs)} records read.")
            return

        click.echo(f"Starting batch render: {len(batch_renderer.jobs)} jobs")

        def progress_callback(completed, total, result):
            click.echo(f"[{completed}/{total}] {result['job_name']}: {result['status']}")

        batch_renderer.run_batch(progress_callback)

        summary = batch_renderer.get_summary()
        click.echo("\nBatch complete:")
        click.echo(f"  Jobs completed: {summary['completed']}/{summary['total_jobs']}")
        click.echo(f"  Failed: {summary['failed']}, skipped: {summary['skipped']}")
        click.echo(f"  Total time: {summary['total_render_time']:.2f}s")

        if summary['failed']:
            sys.exit(1)

    except (FractalError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
@click.argument('fractal_type', type=click.Choice(VARIANT_NAMES))
@click.argument('output', type=click.Path(dir_okay=False))
@click.option('--width', '-w', type=int, default=800, help='Image width')
@click.option('--height', '-h', type=int, default=800, help='Image height')
@click.option('--max-iter', type=int, default=0,
              help='Iterations or recursion depth (0 uses the fractal default)')
@click.option('--julia-c', type=str, help='Julia constant "real,imag" or preset name')
@click.option('--seed', type=int, default=0, help='Seed for the stochastic fractals')
@click.option('--unseeded', is_flag=True, help='Ignore --seed and draw fresh randomness')
@click.pass_context
def render(ctx, fractal_type, output, width, height, max_iter, julia_c, seed, unseeded):
    """
    Render a single fractal image.

    FRACTAL_TYPE: Fractal variant name
    OUTPUT: Output image file path (.bmp, .png or .tiff)
    """
    try:
        julia_real = julia_imag = 0.0
        if julia_c:
            if julia_c in JULIA_PRESETS:
                julia_real, julia_imag = JULIA_PRESETS[julia_c]
                click.echo(f"Using Julia preset: {julia_c}")
            else:
                try:
                    julia_real, julia_imag = [float(x.strip()) for x in julia_c.split(',')]
                except ValueError:
                    click.echo("Error: Invalid Julia constant. Use 'real,imag' or preset name", err=True)
                    sys.exit(1)

        request = FractalRequest(
            variant=FractalVariant.from_name(fractal_type),
            width=width,
            height=height,
            max_iterations=max_iter,
            julia_real=julia_real,
            julia_imag=julia_imag,
            seed=seed,
        )

        renderer = FractalRenderer(RenderConfig(seeded=not unseeded))

        click.echo(f"Rendering {fractal_type} fractal...")
        start_time = time.time()
        path = renderer.render_to_file(request, Path(output))
        click.echo(f"Render complete: {time.time() - start_time:.2f}s")
        click.echo(f"Saved: {path}")

    except (FractalError, OSError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
@click.pass_context
def list_fractals(ctx):
    """List available fractal types and their codes."""
    fractals = FractalRegistry.list_fractals()

    click.echo("Available fractal types:")
    for variant in FractalVariant:
        click.echo(f"  {variant.value:2d}  {variant.slug}")
        if ctx.obj.get('verbose'):
            click.echo(f"        {fractals[variant.slug]}")

    click.echo("\nJulia set presets:")
    for name, (real, imag) in JULIA_PRESETS.items():
        click.echo(f"  {name}: c = {complex(real, imag)}")


@main.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False), default='fractals.json',
              help='Output file path (.json or .yaml)')
@click.pass_context
def init_config(ctx, output):
    """
    Create a configuration template file.
    """
    try:
        path = ConfigManager().export_config_template(Path(output))
        click.echo(f"Configuration template created: {path}")
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument('config_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate_config(ctx, config_file):
    """Validate a configuration file."""
    try:
        manager = ConfigManager()
        errors = manager.validate_config(manager.load_config(config_file))
    except (FractalError, OSError) as e:
        click.echo(f"Error validating config: {e}", err=True)
        sys.exit(1)

    if not errors:
        click.echo(f"Configuration file is valid: {config_file}")
    else:
        click.echo(f"Configuration file has errors: {config_file}")
        for error in errors:
            click.echo(f"  Error: {error}")
        sys.exit(1)


if __name__ == '__main__':
    main()
