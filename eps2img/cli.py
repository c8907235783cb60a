"""
Command-line interface for eps2img.
"""

import os
import time

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from eps2img import __version__
from eps2img.converter import Converter
from eps2img.options import resolve_run_config, run_options
from eps2img.utils import configure_logging

console = Console()


class BareInvocationCommand(click.Command):
    """Command that prints its help and exits 0 when given no arguments.

    The closing elapsed-time line and pause prompt still follow the help text.
    """

    def parse_args(self, ctx, args):
        if not args:
            started = time.monotonic()
            click.echo(ctx.get_help())
            _finish(started, pause=True)
            ctx.exit(0)
        return super().parse_args(ctx, args)


def _echo(message):
    style = "red" if " failed" in message else None
    console.print(escape(message), style=style, highlight=False)


def _finish(started, pause):
    elapsed = escape(f"Elapsed real time: [{time.monotonic() - started:.0f} s]")
    console.print(f"\n[dim]{elapsed}[/dim]")
    if pause:
        click.pause("Press enter to exit...")


@click.command(
    name="eps2img",
    cls=BareInvocationCommand,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__)
@run_options
def cli(**params):
    """
    Convert PS/EPS files to raster (PNG, JPEG) and vector (PDF, SVG, EMF, WMF)
    images using Ghostscript and Inkscape.

    Examples:

        eps2img tiger.eps --dpi=400

        eps2img kuro_shiba.eps mame_shiba.eps --fmt=jpg --dpi=600

        eps2img -a --fmt=png_trn,jpg --dpi=200 --nopause

        eps2img -a --fmt=all
    """
    started = time.monotonic()
    configure_logging(params["verbose"])

    config = resolve_run_config(**params)
    console.print(f"\n[bold cyan]eps2img {__version__}[/bold cyan]: Convert PS/EPS files to raster and vector images")

    if not config.input_files:
        console.print("\n[bold yellow]⚠ Nothing to convert[/bold yellow]")
        _finish(started, config.pause_at_exit)
        return

    files_table = Table(title="Files to Convert", show_header=True)
    files_table.add_column("#", style="cyan", width=4)
    files_table.add_column("File", style="green")
    for idx, name in enumerate(config.input_files, 1):
        files_table.add_row(str(idx), escape(name))
    console.print(files_table)

    formats = ", ".join(tag.label for tag in config.ordered_formats())
    console.print(f"[dim]Formats: {formats} | DPI: {config.raster_dpi} | PDF: {config.pdf_version}[/dim]\n")

    converter = Converter(config, echo=_echo)
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Converting", total=len(config.input_files))

        def update_progress(filename, current, total):
            progress.update(task, completed=current, description=f"Converted: {filename}")

        results = converter.convert_all(progress_callback=update_progress)

    console.print("\n[bold]Conversion Summary[/bold]")
    summary_table = Table(show_header=False)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("Total Files", str(results.total))
    summary_table.add_row("✓ Converted", f"[green]{results.success}[/green]")
    summary_table.add_row("✗ With Failures", f"[red]{results.failure}[/red]")
    summary_table.add_row("⚠ Not Found", f"[yellow]{results.skipped}[/yellow]")
    summary_table.add_row("Outputs Produced", str(results.outputs_produced))
    console.print(summary_table)

    failed = [result for result in results.results if result.failed or result.error]
    if failed:
        console.print("\n[bold red]Failures:[/bold red]")
        for result in failed:
            if result.error:
                console.print(f"  ✗ {escape(os.path.basename(result.source))}: {escape(result.error)}")
            for outcome in result.failed:
                console.print(
                    f"  ✗ {escape(os.path.basename(result.source))} → {outcome.format.label}: "
                    f"{escape(outcome.message)}"
                )

    _finish(started, config.pause_at_exit)


def main():
    cli()


if __name__ == '__main__':
    main()
