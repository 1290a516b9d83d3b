"""
eCFR Word Count - Command Line Interface
Main entry point for the resumable agency word-count crawler
"""

import click
import json
import re
import sys
from pathlib import Path
from typing import Optional

from ecfr_wordcount.logger import setup_logging, get_logger
from ecfr_wordcount.analytics import corrections_by_year, default_changes_since, title_changes_by_month
from ecfr_wordcount.client import ECFRClient, ECFRClientError
from ecfr_wordcount.orchestrator import AGENCY_ORDERS, CrawlError, CrawlOrchestrator
from ecfr_wordcount.progress_store import ProgressStore, ProgressStoreError, summarize_progress
from ecfr_wordcount.sampler import sample_word_counts
from config import settings

logger = get_logger(__name__)

LEADING_INTEGER = re.compile(r"\s*[+-]?\d+")


def parse_agency_count(value: Optional[str]) -> int:
    """Number of agencies to crawl, read from the leading digits of the argument

    "10abc" and "3.5" read as 10 and 3; anything absent, non-numeric or not
    positive falls back to the default.
    """
    match = LEADING_INTEGER.match(value or "")
    if match is None:
        return settings.DEFAULT_AGENCY_COUNT
    count = int(match.group(0))
    return count if count > 0 else settings.DEFAULT_AGENCY_COUNT


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--log-file/--no-log-file', default=True, help='Enable/disable file logging')
@click.option('--data-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory holding progress.json, status.html and the report')
@click.pass_context
def cli(ctx, debug, log_file, data_dir):
    """eCFR Word Count - resumable word census of Code of Federal Regulations agencies"""
    log_level = 'DEBUG' if debug else settings.LOG_LEVEL
    setup_logging(log_level, log_file)

    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    ctx.obj['data_dir'] = data_dir


@cli.command()
@click.argument('agency_count', required=False)
@click.option('--order', type=click.Choice(AGENCY_ORDERS), default=settings.AGENCY_ORDER,
              help='Pick agencies with the fewest or the most CFR references first')
@click.pass_context
def crawl(ctx, agency_count, order):
    """Count words for AGENCY_COUNT agencies (default 5), resuming any previous run"""
    count = parse_agency_count(agency_count)
    store = ProgressStore(ctx.obj['data_dir'])
    client = ECFRClient()

    try:
        logger.info(f"Starting word count for {count} {order} agencies...")
        orchestrator = CrawlOrchestrator(client, store, order=order)
        report = orchestrator.run(count)

        click.echo(f"\nWord Count Results ({len(report)} agencies):")
        for row in report:
            click.echo(f"  {row.word_count:>12,}  {row.agency}")
        click.echo(f"\nReport saved to {store.report_path}")

    except CrawlError as e:
        logger.error(f"Crawl failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Crawl interrupted by user; rerun to resume")
        sys.exit(1)
    finally:
        client.close()


@cli.command()
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format')
@click.pass_context
def status(ctx, output_format):
    """Show progress of the current or last crawl"""
    try:
        progress = ProgressStore(ctx.obj['data_dir']).load()
    except ProgressStoreError as e:
        logger.error(f"Status retrieval failed: {e}")
        sys.exit(1)

    if progress is None:
        click.echo("Word count has not been started.")
        return

    summary = summarize_progress(progress)
    if output_format == 'json':
        click.echo(json.dumps(summary, indent=2))
        return

    click.echo("Crawl Status:")
    click.echo("=" * 13)
    click.echo(f"  Status            : {summary['status']}")
    click.echo(f"  Complete          : {summary['percentComplete']}%")
    click.echo(f"  Agencies          : {summary['completedAgencies']} / {summary['totalAgencies']}")
    click.echo(f"  Current agency    : {summary['currentAgency'] or 'Not started'}")
    click.echo(f"  Elapsed minutes   : {summary['elapsedMinutes']}")
    click.echo(f"  Last update       : {summary['lastUpdateTime']}")
    if progress.error:
        click.echo(f"  Error             : {progress.error}")

    if progress.agencies_progress:
        click.echo("\nAgencies:")
        for name, agency in progress.agencies_progress.items():
            mark = "✓" if agency.completed else " "
            click.echo(f"  [{mark}] {name}: {agency.completed_parts}/{agency.total_parts} parts, "
                       f"{agency.word_count:,} words")


@cli.command()
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format')
@click.pass_context
def report(ctx, output_format):
    """Show the final word-count report"""
    try:
        rows = ProgressStore(ctx.obj['data_dir']).load_report()
    except ProgressStoreError as e:
        logger.error(f"Report retrieval failed: {e}")
        sys.exit(1)

    if rows is None:
        click.echo("Word count report not available. Run 'crawl' first.")
        return

    if output_format == 'json':
        click.echo(json.dumps([row.to_dict() for row in rows], indent=2))
        return

    click.echo(f"{'Words':>12}  {'Parts':>6}  Agency")
    click.echo("-" * 60)
    for row in rows:
        click.echo(f"{row.word_count:>12,}  {row.parts_processed:>6}  {row.agency}")
        if row.shared_regulations:
            click.echo(f"{'':>22}{row.shared_regulations_note}")


@cli.command()
@click.option('--agencies', 'agency_limit', type=click.IntRange(min=1),
              default=settings.SAMPLE_AGENCY_LIMIT, help='Number of agencies to sample')
@click.option('--references', 'reference_limit', type=click.IntRange(min=1),
              default=settings.SAMPLE_REFERENCES_PER_AGENCY, help='CFR references sampled per agency')
@click.option('--parts', 'part_limit', type=click.IntRange(min=1),
              default=settings.SAMPLE_PARTS_PER_TITLE, help='Parts sampled per title')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format')
def sample(agency_limit, reference_limit, part_limit, output_format):
    """Quick sampled word count for the first agencies (no checkpoint)"""
    client = ECFRClient()
    try:
        results = sample_word_counts(client, agency_limit, reference_limit, part_limit)
    except ECFRClientError as e:
        logger.error(f"Sampled word count failed: {e}")
        sys.exit(1)
    finally:
        client.close()

    if output_format == 'json':
        click.echo(json.dumps(results, indent=2))
        return

    click.echo(f"{'Words':>12}  {'Parts':>6}  Agency")
    click.echo("-" * 60)
    for row in results['agencies']:
        titles = ', '.join(str(title) for title in row['titlesExamined']) or 'none'
        click.echo(f"{row['wordCount']:>12,}  {row['sectionsExamined']:>6}  {row['agency']} (titles: {titles})")
    click.echo(f"\n{results['metadata']['sampleSize']}, as of {results['metadata']['date']}")


@cli.command()
@click.option('--date', 'as_of', help='Corrections as of this date (YYYY-MM-DD)')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format')
def corrections(as_of, output_format):
    """Count eCFR corrections per year"""
    client = ECFRClient()
    try:
        results = corrections_by_year(client.get_corrections(as_of))
    except ECFRClientError as e:
        logger.error(f"Corrections lookup failed: {e}")
        sys.exit(1)
    finally:
        client.close()

    if output_format == 'json':
        click.echo(json.dumps({'corrections': results}, indent=2))
        return
    for row in results:
        click.echo(f"  {row['year']}: {row['count']}")


@cli.command('title-changes')
@click.argument('title', type=int)
@click.option('--since', help='Only versions issued on or after this date (YYYY-MM-DD)')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format')
def title_changes(title, since, output_format):
    """Count content changes per month for a CFR TITLE"""
    client = ECFRClient()
    try:
        versions = client.get_title_versions(title, since or default_changes_since())
        changes = title_changes_by_month(versions)
    except ECFRClientError as e:
        logger.error(f"Title changes lookup failed: {e}")
        sys.exit(1)
    finally:
        client.close()

    if output_format == 'json':
        click.echo(json.dumps({'changes': changes}, indent=2))
        return
    for row in changes:
        click.echo(f"  {row['month']}: {row['count']}")


def main():
    """Main entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        logger.info("Program interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
