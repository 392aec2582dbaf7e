"""Command-line interface for license_bom.

Provides the main entry point and subcommands for building the bill of
licenses, classifying license texts, minimizing expressions and managing
the reference corpus.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape

from license_bom import pipeline
from license_bom.cache import CorpusCache
from license_bom.classifier import LicenseStore
from license_bom.config import DEFAULT_CONFIG_FILE, DEFAULT_LOW_CONFIDENCE_THRESHOLD, Config
from license_bom.errors import CorpusUnavailable, LicenseBomError
from license_bom.expression import parse
from license_bom.fetch import SPDXCorpusFetcher
from license_bom.minimize import AcceptPolicy
from license_bom.reporters import JsonReporter

app = typer.Typer(
    name="license-bom",
    help="Resolve, classify and minimize the licenses of a project's dependencies.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("license_bom")


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("license_bom").setLevel(level)


def _fail(message: str) -> typer.Exit:
    """Print an error message and return the exit to raise."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=1)


def _load_store(corpus: Optional[Path]) -> LicenseStore:
    try:
        return LicenseStore.load(corpus)
    except CorpusUnavailable as e:
        raise _fail(str(e))


@app.command()
def gen(
    graph: Annotated[
        Path,
        typer.Argument(
            help="Dependency graph export (JSON)",
            exists=True,
            readable=True,
            dir_okay=False,
        ),
    ],
    config_path: Annotated[
        Path,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file",
        ),
    ] = DEFAULT_CONFIG_FILE,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Output file path (default: stdout)",
        ),
    ] = None,
    corpus: Annotated[
        Optional[Path],
        typer.Option(
            "--corpus",
            help="Corpus artifact (JSON) or directory of <id>.txt files",
            exists=True,
        ),
    ] = None,
    workers: Annotated[
        Optional[int],
        typer.Option(
            "--workers",
            "-j",
            help="Number of classifier threads",
            min=1,
        ),
    ] = None,
    keep_going: Annotated[
        bool,
        typer.Option(
            "--keep-going",
            help="Report every package whose licenses cannot be minimized",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Generate the bill of licenses for a dependency graph.

    Reads the graph export and any third-party manifests it references,
    classifies unlabelled license files, minimizes every package's
    licenses against the accepted licenses and emits the records as JSON.
    """
    _setup_logging(verbose)

    try:
        config = Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise _fail(f"Unable to read config file: {e}")

    if workers is not None:
        config.workers = workers

    store = _load_store(corpus or config.corpus)

    try:
        result = pipeline.run(graph, config, store, keep_going=keep_going)
    except (LicenseBomError, FileNotFoundError, ValueError) as e:
        raise _fail(str(e))

    reporter = JsonReporter()
    if output:
        try:
            reporter.write(result.packages, output)
        except OSError as e:
            raise _fail(f"Unable to write output: {e}")
        err_console.print(
            f"[green]Wrote[/green] {len(result.packages)} packages to {escape(str(output))}"
        )
    else:
        typer.echo(reporter.render(result.packages), nl=False)

    if result.failures:
        err_console.print(
            f"[red]{len(result.failures)} package(s) could not be minimized[/red]"
        )
        raise typer.Exit(code=1)


@app.command()
def classify(
    files: Annotated[
        list[Path],
        typer.Argument(
            help="License files to classify",
            exists=True,
            readable=True,
            dir_okay=False,
        ),
    ],
    corpus: Annotated[
        Optional[Path],
        typer.Option(
            "--corpus",
            help="Corpus artifact (JSON) or directory of <id>.txt files",
            exists=True,
        ),
    ] = None,
    threshold: Annotated[
        float,
        typer.Option(
            "--threshold",
            "-t",
            help="Scores below this value are flagged as low confidence",
            min=0.0,
            max=1.0,
        ),
    ] = DEFAULT_LOW_CONFIDENCE_THRESHOLD,
) -> None:
    """Identify the SPDX license of license files."""
    store = _load_store(corpus)

    for path in files:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise _fail(f"Unable to read {path}: {e}")

        result = store.analyze(text)
        line = f"{escape(path.name)}: [bold]{result.name}[/bold] ({result.score:.3f})"
        if not result.is_confident(threshold):
            line += " [yellow]low confidence[/yellow]"
        console.print(line)


@app.command()
def minimize(
    expression: Annotated[
        str,
        typer.Argument(help='SPDX license expression, e.g. "MIT OR Apache-2.0"'),
    ],
    accept: Annotated[
        Optional[str],
        typer.Option(
            "--accept",
            "-a",
            help="Comma-separated list of accepted SPDX license IDs",
        ),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Configuration file providing the accepted licenses",
        ),
    ] = None,
) -> None:
    """Print the smallest set of accepted licenses satisfying an expression."""
    if accept:
        tags = [tag.strip() for tag in accept.split(",") if tag.strip()]
    elif config_path:
        try:
            tags = Config.load(config_path).accepted
        except (FileNotFoundError, ValueError) as e:
            raise _fail(f"Unable to read config file: {e}")
    else:
        raise _fail("Must specify either --accept or --config")

    try:
        policy = AcceptPolicy.from_tags(tags)
        minimized = parse(expression).minimized_requirements(policy)
    except LicenseBomError as e:
        raise _fail(str(e))

    for requirement in sorted(str(req) for req in minimized):
        console.print(requirement, highlight=False)


async def _fetch_corpus(ref: str) -> tuple[str, dict[str, str]]:
    async with SPDXCorpusFetcher(ref=ref) as fetcher:
        return await fetcher.fetch_all()


@app.command()
def corpus(
    action: Annotated[
        str,
        typer.Argument(help="Corpus action: 'show', 'update' or 'clear'"),
    ],
    ref: Annotated[
        str,
        typer.Option(
            "--ref",
            help="license-list-data git ref to fetch (e.g. 'main', 'v3.24')",
        ),
    ] = "main",
    db: Annotated[
        Optional[Path],
        typer.Option(
            "--db",
            help="Corpus cache database (default: ~/.cache/license_bom/corpus.db)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Manage the reference license corpus cache.

    Actions:
        show   - Display cache location, license count, size and version
        update - Download the SPDX license texts into the cache
        clear  - Remove every cached license text
    """
    _setup_logging(verbose)
    cache_instance = CorpusCache(db_path=db)

    if action == "show":
        info = cache_instance.info()
        console.print(f"[bold]Cache Location:[/bold] {escape(info['path'])}")
        console.print(f"[bold]Licenses:[/bold] {info['count']}")
        console.print(f"[bold]Version:[/bold] {escape(info['version'] or 'none')}")
        console.print(f"[bold]Size:[/bold] {info['size_bytes'] / 1024:.1f} KB")

    elif action == "update":
        try:
            version, texts = asyncio.run(_fetch_corpus(ref))
        except CorpusUnavailable as e:
            raise _fail(str(e))
        cache_instance.replace_all(texts, version)
        console.print(
            f"[green]Cached[/green] {len(texts)} license texts from SPDX list {escape(version)}"
        )

    elif action == "clear":
        cache_instance.clear()
        console.print("[green]Corpus cache cleared[/green]")

    else:
        err_console.print(f"[red]Unknown action:[/red] {escape(action)}")
        err_console.print("Valid actions: show, update, clear")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
