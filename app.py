"""
Command line entry point for exam-listening-studio.

    studio batch reading.pdf --voice en-GB-RyanNeural --rate=-10%
    studio wordbook add abandon "v. 放弃" --phonetic "/əˈbændən/"
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from utils.config import StudioConfig, load_config
from utils.document_utils import read_lines
from utils.errors import StudioError
from utils.logging_utils import configure_logging
from utils.tts_service import TTSService
from utils.tts_utils import build_engine
from utils.voices import DEFAULT_RATE
from utils.wordbook import WordBook

app = typer.Typer(
    name="studio",
    no_args_is_help=True,
    help="Sentence-by-sentence listening audio and a vocabulary book for English exam practice.",
)
wordbook_app = typer.Typer(no_args_is_help=True, help="Manage the vocabulary book.")
app.add_typer(wordbook_app, name="wordbook")

VoiceFlag = Annotated[Optional[str], typer.Option("--voice", "-v", help="Voice id, see `studio voices`.")]
RateFlag = Annotated[str, typer.Option("--rate", "-r", help="Speech rate such as +10% or -20%.")]


def _fail(message: str) -> None:
    typer.secho(f"❌ {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _config(ctx: typer.Context) -> StudioConfig:
    return ctx.obj


def _service(ctx: typer.Context) -> TTSService:
    config = _config(ctx)
    return TTSService(config, build_engine(config))


def _wordbook(ctx: typer.Context) -> WordBook:
    config = _config(ctx)
    return WordBook(config.wordbook_path, config.audio_url_prefix)


@app.callback()
def main_options(
    ctx: typer.Context,
    config_file: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="YAML config file.")
    ] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Override log level.")] = None,
) -> None:
    try:
        config = load_config(config_file)
    except StudioError as exc:
        _fail(str(exc))
    configure_logging(log_level or config.log_level)
    config.ensure_dirs()
    ctx.obj = config


@app.command()
def voices(ctx: typer.Context) -> None:
    """List the available English voices."""
    payload = _service(ctx).list_voices()
    for voice in payload["voices"]:
        marker = "*" if voice["id"] == payload["default"] else " "
        typer.echo(f"{marker} {voice['id']:<22} {voice['name']}")


@app.command()
def status(ctx: typer.Context) -> None:
    """Check that the TTS engine can be used."""
    payload = _service(ctx).status()
    if not payload["available"]:
        _fail(payload["message"])
    typer.echo(f"✅ {payload['message']}")


@app.command()
def say(ctx: typer.Context, text: str, voice: VoiceFlag = None, rate: RateFlag = DEFAULT_RATE) -> None:
    """Generate audio for a single text."""
    try:
        payload = asyncio.run(_service(ctx).generate(text, voice, rate))
    except StudioError as exc:
        _fail(str(exc))
    typer.echo(f"🔊 {payload['audioPath']} ({payload['voice']})")


@app.command()
def batch(
    ctx: typer.Context,
    input_path: Annotated[Path, typer.Argument(help="A .pdf, .docx or .txt file; one audio file per line.")],
    voice: VoiceFlag = None,
    rate: RateFlag = DEFAULT_RATE,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full result as JSON.")] = False,
) -> None:
    """Generate one audio file per line of a document."""
    try:
        sentences = read_lines(input_path)
        payload = asyncio.run(_service(ctx).generate_batch(sentences, voice, rate))
    except FileNotFoundError:
        _fail(f"file not found: {input_path}")
    except StudioError as exc:
        _fail(str(exc))

    if as_json:
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    for item in payload["results"]:
        number = f"{item['index'] + 1:03d}"
        if item["success"]:
            typer.echo(f"✅ {number} {item['audioPath']}  {item['text'][:60]}")
        else:
            typer.echo(f"❌ {number} {item['error']}  {item['text'][:60]}")
    typer.echo(f"{payload['successCount']}/{payload['total']} sentences converted (batch {payload['batchId']})")
    if payload["successCount"] == 0:
        typer.secho("⚠️ No sentences were converted successfully.", fg=typer.colors.YELLOW, err=True)


@app.command()
def word(ctx: typer.Context, text: Annotated[str, typer.Argument(metavar="WORD")], voice: VoiceFlag = None) -> None:
    """Generate (or reuse) the pronunciation audio of a word."""
    try:
        payload = asyncio.run(_service(ctx).generate_word(text, voice))
    except StudioError as exc:
        _fail(str(exc))
    suffix = " (cached)" if payload["cached"] else ""
    typer.echo(f"🔊 {payload['audioPath']}{suffix}")


def _echo_entries(entries) -> None:
    for entry in entries:
        phonetic = f" {entry['phonetic']}" if entry.get("phonetic") else ""
        typer.echo(f"{entry['word']}{phonetic}  {entry['meaning']}")
    typer.echo(f"{len(entries)} word(s)")


@wordbook_app.command("list")
def wordbook_list(ctx: typer.Context) -> None:
    """Show every word in the book."""
    _echo_entries(_wordbook(ctx).all())


@wordbook_app.command("search")
def wordbook_search(ctx: typer.Context, query: str) -> None:
    """Find words by spelling, meaning or source."""
    try:
        entries = _wordbook(ctx).search(query)
    except ValueError as exc:
        _fail(str(exc))
    _echo_entries(entries)


@wordbook_app.command("add")
def wordbook_add(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(metavar="WORD")],
    meaning: str,
    phonetic: Annotated[str, typer.Option("--phonetic", "-p")] = "",
    source: Annotated[str, typer.Option("--source", "-s", help="Sentence the word came from.")] = "",
) -> None:
    """Add a word, or overwrite it if it is already in the book."""
    try:
        entry, created = _wordbook(ctx).add(text, meaning, phonetic, source)
    except ValueError as exc:
        _fail(str(exc))
    typer.echo(f"{'Added' if created else 'Updated'}: {entry['word']}")


@wordbook_app.command("update")
def wordbook_update(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(metavar="WORD")],
    meaning: Annotated[Optional[str], typer.Option("--meaning", "-m")] = None,
    phonetic: Annotated[Optional[str], typer.Option("--phonetic", "-p")] = None,
    source: Annotated[Optional[str], typer.Option("--source", "-s")] = None,
) -> None:
    """Change some fields of a stored word."""
    try:
        entry = _wordbook(ctx).update(text, phonetic=phonetic, meaning=meaning, source=source)
    except StudioError as exc:
        _fail(str(exc))
    typer.echo(f"Updated: {entry['word']}")


@wordbook_app.command("remove")
def wordbook_remove(ctx: typer.Context, text: Annotated[str, typer.Argument(metavar="WORD")]) -> None:
    """Delete a word from the book."""
    try:
        entry = _wordbook(ctx).remove(text)
    except StudioError as exc:
        _fail(str(exc))
    typer.echo(f"Removed: {entry['word']}")


@wordbook_app.command("export")
def wordbook_export(
    ctx: typer.Context,
    fmt: Annotated[str, typer.Option("--format", "-f", help="json or csv.")] = "json",
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write to a file instead of stdout.")] = None,
) -> None:
    """Export the book as JSON or CSV."""
    book = _wordbook(ctx)
    if fmt == "json":
        content = book.export_json()
    elif fmt == "csv":
        content = book.export_csv()
    else:
        _fail(f"unknown export format {fmt!r}, use json or csv")
    if output is None:
        typer.echo(content)
        return
    output.write_text(content, encoding="utf-8")
    typer.echo(f"Exported to {output}")


@wordbook_app.command("import")
def wordbook_import(
    ctx: typer.Context,
    source_file: Annotated[Path, typer.Argument(metavar="FILE", help="JSON array of word entries.")],
    replace: Annotated[bool, typer.Option("--replace", help="Discard the current book first.")] = False,
) -> None:
    """Import words from a JSON export."""
    try:
        items = json.loads(source_file.read_text(encoding="utf-8"))
        added, updated, total = _wordbook(ctx).import_words(items, merge=not replace)
    except FileNotFoundError:
        _fail(f"file not found: {source_file}")
    except ValueError as exc:
        _fail(str(exc))
    typer.echo(f"Import finished: {added} added, {updated} updated, {total} in total")


@wordbook_app.command("backup")
def wordbook_backup(ctx: typer.Context) -> None:
    """Write a timestamped copy of the book to the backup folder."""
    config = _config(ctx)
    path = _wordbook(ctx).backup(config.backup_dir)
    typer.echo(f"Backup written to {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
