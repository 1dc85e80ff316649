#!/usr/bin/env python3
"""
CLI for the word resolver

Commands:
    init-db     - Create the words table
    lookup      - Resolve one word through cache -> store -> source
    seed        - Resolve every word of a sentence
    translate   - Translate free text with the translation source
    serve       - Run the HTTP API (development server)

Usage:
    python cli.py lookup apple
    python cli.py lookup apple --json
    python cli.py seed "The quick brown fox" --workers 4
    python cli.py translate "So why do we have rules?"
"""

import json
import logging
import sys

import click

from config import Config


def _build_service(workers=None):
    from services.word_service import build_word_service

    config = Config
    if workers is not None:
        config = type("SeedConfig", (Config,), {"BATCH_MAX_WORKERS": workers})
    return build_word_service(config, kind="job")


@click.group()
@click.version_option(version="1.0.0", prog_name="noteme-words")
@click.option("--verbose", "-v", is_flag=True, help="Show resolver logs")
def cli(verbose):
    """Word resolver CLI - look up and seed dictionary entries."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@cli.command("init-db")
def init_db():
    """Create the words table if it does not exist."""
    from db.engine import get_engine
    from services.word_store import SqlWordStore

    store = SqlWordStore(get_engine("job"))
    store.create_schema()
    click.secho(f"✓ words table ready ({store.count()} rows)", fg="green")


@cli.command("lookup")
@click.argument("word")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--timeout", type=float, default=None, help="Deadline in seconds")
def lookup(word, output_json, timeout):
    """
    Resolve WORD and print its definitions.
    """
    from services.errors import WordLookupError
    from utils.normalize import ValidationError, normalize_key

    try:
        key = normalize_key(word)
    except ValidationError as e:
        click.secho(f"Error: {e}", fg="red")
        sys.exit(2)

    service = _build_service()
    try:
        record = service.lookup(key, timeout=timeout)
    except WordLookupError as e:
        click.secho(f"Error [{e.code}]: {e}", fg="red")
        sys.exit(1)
    finally:
        service.close()

    if output_json:
        click.echo(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))
        return

    click.secho(record.key, bold=True)
    for group, definitions in zip(record.groups, record.entries):
        click.echo(f"  {group}")
        for definition in definitions:
            click.echo(f"    - {definition}")


@cli.command("seed")
@click.argument("sentence")
@click.option("--workers", type=int, default=None, help="Concurrency cap (default: one per word)")
def seed(sentence, workers):
    """
    Resolve every word of SENTENCE.
    """
    from services.errors import BatchPartialFailure
    from utils.normalize import tokenize_sentence

    keys = tokenize_sentence(sentence)
    click.echo(f"Seeding {len(keys)} words...")

    service = _build_service(workers)
    try:
        report = service.seed(keys)
    except BatchPartialFailure as e:
        summary = e.report.to_dict()
        click.secho(
            f"Seed failed: {len(summary['failed'])} of {summary['total']} words", fg="red"
        )
        for key, code in summary["failed"].items():
            click.echo(f"  {key}: {code}")
        sys.exit(1)
    finally:
        service.close()

    click.secho(f"✓ {report.total} words resolved in {report.duration_seconds:.2f}s", fg="green")


@cli.command("translate")
@click.argument("text")
@click.option("--to", "target_lang", default=None, help="Target language (default: config)")
def translate(text, target_lang):
    """
    Translate TEXT with the translation source.
    """
    from scrapers.translate import GoogleTranslateFetcher, TranslateOptions
    from services.errors import FetchError

    options = TranslateOptions(
        source_lang=Config.TRANSLATE_FROM,
        target_lang=target_lang or Config.TRANSLATE_TO,
        host=Config.TRANSLATE_HOST,
    )
    fetcher = GoogleTranslateFetcher(options=options, timeout=Config.FETCH_TIMEOUT_SECONDS)
    try:
        click.echo(fetcher.translate(text))
    except FetchError as e:
        click.secho(f"Error: {e}", fg="red")
        sys.exit(1)


@cli.command("serve")
@click.option("--port", type=int, default=None, help="Port (default: PORT or 16000)")
def serve(port):
    """Run the HTTP API with the Flask development server."""
    from app import create_app

    application = create_app()
    application.run(host="0.0.0.0", port=port or Config.PORT, debug=Config.DEBUG)


if __name__ == "__main__":
    cli()
