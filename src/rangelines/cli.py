"""CLI implementation for rangelines."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from . import read_records, read_records_async
from .core.config import DEFAULT_CHUNK_SIZE, parse_delimiter
from .core.model import ConfigurationError, ObjectAccessError
from .io import parse_location

app = typer.Typer(add_completion=False, help="Print the records of a large remote object, one range at a time.")


class _Printer:
    """Writes records to a sink, plain or as JSON lines."""

    def __init__(self, sink, jsonl: bool, count_only: bool):
        self.sink = sink
        self.jsonl = jsonl
        self.count_only = count_only
        self.count = 0

    def emit(self, record: str) -> None:
        if not self.count_only:
            if self.jsonl:
                self.sink.write(json.dumps({"index": self.count, "record": record}))
            else:
                self.sink.write(record)
            self.sink.write("\n")
        self.count += 1

    def finish(self, remainder: Optional[str]) -> None:
        # The text after the last delimiter is the last record, unless empty
        if remainder:
            self.emit(remainder)
        if self.count_only:
            self.sink.write(f"{self.count}\n")


def _print_sync(uri: str, printer: _Printer, **options) -> None:
    reader = read_records(uri, **options)
    for record in reader.records():
        printer.emit(record)
    printer.finish(reader.remainder)


async def _print_async(uri: str, printer: _Printer, **options) -> None:
    reader = await read_records_async(uri, **options)
    async for record in reader.records():
        printer.emit(record)
    printer.finish(reader.remainder)


@app.command()
def main(
    uri: str = typer.Argument(..., help="Local path, http(s) URL or s3://bucket/key"),
    delimiter: str = typer.Option("\\n", "--delimiter", "-d", help="Record delimiter, backslash escapes allowed"),
    chunk_size: int = typer.Option(DEFAULT_CHUNK_SIZE, "--chunk-size", min=1, help="Bytes requested per range"),
    encoding: str = typer.Option("utf-8", "--encoding", help="Text encoding of the object"),
    jsonl: bool = typer.Option(False, "--jsonl", help="Emit one JSON object per record"),
    count: bool = typer.Option(False, "--count", help="Only print the number of records"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
    use_async: bool = typer.Option(False, "--async", help="Use the asynchronous reader"),
    endpoint_url: Optional[str] = typer.Option(None, "--endpoint-url", help="S3 endpoint override"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every range request"),
):
    """Split one object into records and print them."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        options = {"chunk_size": chunk_size, "delimiter": parse_delimiter(delimiter), "encoding": encoding}
        if endpoint_url and parse_location(uri)[0] == "s3":
            options["endpoint_url"] = endpoint_url
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    # open output sink
    sink = open(output, "w", encoding="utf-8") if output else sys.stdout
    printer = _Printer(sink, jsonl=jsonl, count_only=count)
    try:
        if use_async:
            asyncio.run(_print_async(uri, printer, **options))
        else:
            _print_sync(uri, printer, **options)
    except (ObjectAccessError, ConfigurationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        if output:
            sink.close()


if __name__ == "__main__":
    app()
