"""Command-line interface for clipseqtools.

This module provides the main entry point for the clipseqtools CLI tool.
It uses Click to define one subcommand per analysis.

Commands:
    genome-coverage: Fraction of each chromosome covered by reads
    distribution-on-genic-elements: Reads along 5'UTR, CDS and 3'UTR
    distribution-on-introns-exons: Reads along exons and introns
    libraries-overlap-stats: Primary reads overlapping a reference library
    libraries-relative-read-density: Primary reads around reference reads
    count-tags-per-genic-element: Reads per gene, transcript, exon, intron
    reads-long-gaps-size-distribution: Sizes of N gaps in alignments

Example:
    $ clipseqtools --help
    $ clipseqtools genome-coverage --bed reads.bed --rname-sizes hg38.sizes -o out/
    $ clipseqtools distribution-on-genic-elements --sam reads.sam --gtf genes.gtf --bins 20 -o out/
    $ clipseqtools libraries-overlap-stats --bed a.bed --r-bed b.bed --rname-sizes hg38.sizes -o out/
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from clipseqtools import __version__
from clipseqtools.config import Config
from clipseqtools.io.reads import IntervalReadsCollection
from clipseqtools.io.tables import output_path
from clipseqtools.parallel.executor import ParallelExecutor
from clipseqtools.utils.logging import Timer

# Initialize rich console for pretty output
console = Console()
logger = logging.getLogger(__name__)


# =============================================================================
# Shared helpers
# =============================================================================


@contextmanager
def _command_errors(ctx: click.Context) -> Iterator[None]:
    """Report configuration and data errors and exit non-zero."""
    try:
        yield
    except (ValueError, IndexError, OverflowError, OSError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if ctx.obj.get("verbose"):
            console.print_exception()
        raise SystemExit(1)


def _say(ctx: click.Context, message: str) -> None:
    if not ctx.obj.get("quiet"):
        console.print(message)


def _load_reads(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    keep_details: bool = False,
    label: str = "reads",
) -> IntervalReadsCollection:
    """Load a library from exactly one of a BED or SAM/BAM file."""
    from clipseqtools.io.filters import ReadFilter

    if (bed is None) == (sam is None):
        raise click.UsageError(f"Give exactly one of the BED or SAM/BAM inputs for the {label}")

    read_filter = ReadFilter.from_expressions(filters) if filters else None
    if bed is not None:
        from clipseqtools.io.bed import read_bed

        reads = read_bed(bed, read_filter, keep_details)
    else:
        from clipseqtools.io.bam import read_alignments

        reads = read_alignments(sam, read_filter, keep_details)

    _say(ctx, f"[dim]Loaded {reads.record_count():,} {label} records[/dim]")
    return reads


def _executor(config: Config) -> ParallelExecutor:
    return ParallelExecutor(
        n_workers=config.execution.workers,
        backend=config.execution.backend,
    )


def _configure(ctx: click.Context, **overrides: Any) -> Config:
    """Apply command-line overrides to the loaded configuration."""
    config: Config = ctx.obj["config"]
    sections = {
        "bins": config.binning,
        "length_thres": config.binning,
        "span": config.density,
        "workers": config.execution,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(sections[name], name, value)
    config.validate()
    logger.debug(f"Effective configuration: {config.to_dict()}")
    return config


def reads_options(func: Callable) -> Callable:
    """Options selecting the (primary) library."""
    func = click.option(
        "--filter",
        "filters",
        multiple=True,
        help='Read filter, e.g. --filter \'rmsk="undef"\' (repeatable).',
    )(func)
    func = click.option(
        "--sam",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Reads as SAM or BAM (XC:i tag holds the copy number).",
    )(func)
    func = click.option(
        "--bed",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Reads as BED (score column holds the copy number).",
    )(func)
    return func


def reference_options(func: Callable) -> Callable:
    """Options selecting the reference library."""
    func = click.option(
        "--r-filter",
        "r_filters",
        multiple=True,
        help="Filter for the reference reads (repeatable).",
    )(func)
    func = click.option(
        "--r-sam",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Reference reads as SAM or BAM.",
    )(func)
    func = click.option(
        "--r-bed",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Reference reads as BED.",
    )(func)
    return func


def output_options(func: Callable) -> Callable:
    """Output prefix and worker options."""
    func = click.option(
        "-j",
        "--workers",
        type=int,
        default=None,
        help="Parallel workers, one chromosome per task.",
    )(func)
    func = click.option(
        "-o",
        "--o-prefix",
        type=str,
        default="./",
        show_default=True,
        help="Output path prefix; end with / to write into a directory.",
    )(func)
    return func


_sizes_option = click.option(
    "--rname-sizes",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Tab-delimited file of reference sequence sizes.",
)

_gtf_option = click.option(
    "--gtf",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="GTF annotation with exon, CDS and stop_codon features.",
)


# =============================================================================
# Main group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="clipseqtools")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="TOML configuration file.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write debug logs to this file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    config_path: Path | None,
    log_file: Path | None,
) -> None:
    """clipseqtools: positional statistics for CLIP-Seq libraries.

    Measures genome coverage, distributions along genic elements, overlap
    and relative density between libraries, and per-element read counts.
    """
    from clipseqtools.utils.logging import setup_logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    verbosity = 0 if quiet else (2 if verbose else 1)
    setup_logging(verbosity=verbosity, log_file=log_file)

    with _command_errors(ctx):
        ctx.obj["config"] = Config.load(config_path)


# =============================================================================
# genome-coverage
# =============================================================================


@main.command("genome-coverage")
@reads_options
@_sizes_option
@output_options
@click.pass_context
def genome_coverage_cmd(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    rname_sizes: Path,
    o_prefix: str,
    workers: int | None,
) -> None:
    """Measure the percentage of each chromosome covered by reads."""
    from clipseqtools.analysis.coverage import genome_coverage, write_genome_coverage
    from clipseqtools.io.sizes import read_rname_sizes

    with _command_errors(ctx):
        config = _configure(ctx, workers=workers)
        sizes = read_rname_sizes(rname_sizes)
        reads = _load_reads(ctx, bed, sam, filters)

        with Timer("Genome coverage", logger):
            rows = genome_coverage(reads, sizes, executor=_executor(config))

        path = output_path(o_prefix, "genome_coverage.tab")
        write_genome_coverage(rows, path)
        total = rows[-1]
        _say(ctx, f"Genome covered: {total.covered_area:,}/{total.size:,} ({total.percent_covered:.4f}%)")
        _say(ctx, f"[green]Wrote:[/green] {path}")


# =============================================================================
# distribution-on-genic-elements
# =============================================================================


@main.command("distribution-on-genic-elements")
@reads_options
@_gtf_option
@click.option("--bins", type=int, default=None, help="Bins per element [default: 10].")
@click.option(
    "--length-thres",
    type=int,
    default=None,
    help="Skip elements not longer than this [default: 300].",
)
@output_options
@click.pass_context
def distribution_on_genic_elements_cmd(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    gtf: Path,
    bins: int | None,
    length_thres: int | None,
    o_prefix: str,
    workers: int | None,
) -> None:
    """Measure read distribution along 5'UTR, CDS and 3'UTR."""
    from clipseqtools.analysis.distribution import (
        distribution_on_genic_elements,
        write_distribution,
        write_per_transcript_distribution,
    )
    from clipseqtools.io.annotation import read_transcripts

    with _command_errors(ctx):
        config = _configure(ctx, bins=bins, length_thres=length_thres, workers=workers)
        transcripts = read_transcripts(gtf)
        reads = _load_reads(ctx, bed, sam, filters)

        with Timer("Distribution on genic elements", logger):
            distribution = distribution_on_genic_elements(
                reads,
                transcripts,
                bins=config.binning.bins,
                length_thres=config.binning.length_thres,
                executor=_executor(config),
            )

        averaged = output_path(o_prefix, "distribution_on_genic_elements.tab")
        per_transcript = output_path(
            o_prefix, "distribution_on_genic_elements.per_transcript.tab"
        )
        write_distribution(distribution, averaged)
        write_per_transcript_distribution(distribution, per_transcript)
        for element, accumulator in distribution.accumulators.items():
            _say(ctx, f"  Counted {element}: {accumulator.n_features:,}")
        _say(ctx, f"[green]Wrote:[/green] {averaged}")
        _say(ctx, f"[green]Wrote:[/green] {per_transcript}")


# =============================================================================
# distribution-on-introns-exons
# =============================================================================


@main.command("distribution-on-introns-exons")
@reads_options
@_gtf_option
@click.option("--bins", type=int, default=None, help="Bins per element [default: 10].")
@output_options
@click.pass_context
def distribution_on_introns_exons_cmd(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    gtf: Path,
    bins: int | None,
    o_prefix: str,
    workers: int | None,
) -> None:
    """Measure read distribution along exons and introns of coding transcripts."""
    from clipseqtools.analysis.distribution import (
        distribution_on_introns_exons,
        write_distribution,
    )
    from clipseqtools.io.annotation import read_transcripts

    with _command_errors(ctx):
        config = _configure(ctx, bins=bins, workers=workers)
        transcripts = read_transcripts(gtf)
        reads = _load_reads(ctx, bed, sam, filters)

        with Timer("Distribution on introns and exons", logger):
            distribution = distribution_on_introns_exons(
                reads, transcripts, bins=config.binning.bins, executor=_executor(config)
            )

        path = output_path(o_prefix, "distribution_on_introns_exons.tab")
        write_distribution(distribution, path)
        _say(ctx, f"[green]Wrote:[/green] {path}")


# =============================================================================
# libraries-overlap-stats
# =============================================================================


@main.command("libraries-overlap-stats")
@reads_options
@reference_options
@_sizes_option
@output_options
@click.pass_context
def libraries_overlap_stats_cmd(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    r_bed: Path | None,
    r_sam: Path | None,
    r_filters: tuple[str, ...],
    rname_sizes: Path,
    o_prefix: str,
    workers: int | None,
) -> None:
    """Count primary reads overlapping reference reads on the same strand."""
    from clipseqtools.analysis.compare import libraries_overlap_stats, write_overlap_stats
    from clipseqtools.io.sizes import read_rname_sizes

    with _command_errors(ctx):
        config = _configure(ctx, workers=workers)
        sizes = read_rname_sizes(rname_sizes)
        primary = _load_reads(ctx, bed, sam, filters, label="primary reads")
        reference = _load_reads(ctx, r_bed, r_sam, r_filters, label="reference reads")

        with Timer("Libraries overlap", logger):
            stats = libraries_overlap_stats(
                primary, reference, sizes, executor=_executor(config)
            )

        path = output_path(o_prefix, "libraries_overlap_stats.tab")
        write_overlap_stats(stats, path)
        _say(
            ctx,
            f"Overlapping records: {stats.overlapping_records:,}/{stats.total_records:,}",
        )
        _say(ctx, f"[green]Wrote:[/green] {path}")


# =============================================================================
# libraries-relative-read-density
# =============================================================================


@main.command("libraries-relative-read-density")
@reads_options
@reference_options
@_sizes_option
@click.option("--span", type=int, default=None, help="Window radius [default: 25].")
@output_options
@click.pass_context
def libraries_relative_read_density_cmd(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    r_bed: Path | None,
    r_sam: Path | None,
    r_filters: tuple[str, ...],
    rname_sizes: Path,
    span: int | None,
    o_prefix: str,
    workers: int | None,
) -> None:
    """Measure primary read density around the midpoints of reference reads."""
    from clipseqtools.analysis.compare import (
        libraries_relative_read_density,
        write_relative_density,
    )
    from clipseqtools.io.sizes import read_rname_sizes

    with _command_errors(ctx):
        config = _configure(ctx, span=span, workers=workers)
        sizes = read_rname_sizes(rname_sizes)
        primary = _load_reads(ctx, bed, sam, filters, label="primary reads")
        reference = _load_reads(ctx, r_bed, r_sam, r_filters, label="reference reads")

        with Timer("Relative read density", logger):
            profile = libraries_relative_read_density(
                primary,
                reference,
                sizes,
                span=config.density.span,
                executor=_executor(config),
            )

        path = output_path(o_prefix, "libraries_relative_read_density.tab")
        write_relative_density(profile, path)
        _say(ctx, f"[green]Wrote:[/green] {path}")


# =============================================================================
# count-tags-per-genic-element
# =============================================================================


@main.command("count-tags-per-genic-element")
@reads_options
@_gtf_option
@click.option("-o", "--o-prefix", type=str, default="./", show_default=True, help="Output path prefix.")
@click.pass_context
def count_tags_per_genic_element_cmd(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    gtf: Path,
    o_prefix: str,
) -> None:
    """Count reads contained in each gene, transcript, exon and intron."""
    from clipseqtools.analysis.counts import (
        count_tags_per_genic_element,
        write_genic_element_counts,
    )
    from clipseqtools.io.annotation import read_transcripts

    with _command_errors(ctx):
        transcripts = read_transcripts(gtf)
        reads = _load_reads(ctx, bed, sam, filters)

        with Timer("Tag counting", logger):
            counts = count_tags_per_genic_element(reads, transcripts)

        for path in write_genic_element_counts(counts, o_prefix):
            _say(ctx, f"[green]Wrote:[/green] {path}")


# =============================================================================
# reads-long-gaps-size-distribution
# =============================================================================


@main.command("reads-long-gaps-size-distribution")
@reads_options
@click.option("-o", "--o-prefix", type=str, default="./", show_default=True, help="Output path prefix.")
@click.pass_context
def reads_long_gaps_size_distribution_cmd(
    ctx: click.Context,
    bed: Path | None,
    sam: Path | None,
    filters: tuple[str, ...],
    o_prefix: str,
) -> None:
    """Measure the size distribution of N gaps in read alignments."""
    from clipseqtools.analysis.gaps import (
        reads_long_gaps_size_distribution,
        write_gaps_distribution,
    )

    with _command_errors(ctx):
        reads = _load_reads(ctx, bed, sam, filters, keep_details=True)

        with Timer("Gap size distribution", logger):
            rows = reads_long_gaps_size_distribution(reads)

        path = output_path(o_prefix, "reads_long_gaps_size_distribution.tab")
        write_gaps_distribution(rows, path)
        _say(ctx, f"[green]Wrote:[/green] {path}")


if __name__ == "__main__":
    main()
