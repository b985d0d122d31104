"""CLI entry point for the File Search proxy.

Provides commands:
  - stores: list, create, get and delete File Search stores
  - docs: list, upload and delete documents in a store
  - operation: check or wait on an import operation
  - query: grounded question answering over one or more stores
  - models: list Gemini models that support File Search
  - serve: run the HTTP proxy for the browser UI
  - config: manage the Gemini API key in the system keyring
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import keyring
import typer
from keyring.errors import KeyringError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from filesearch.client import FileSearchClient
from filesearch.config import KEY_NAME, SERVICE_NAME, FileSearchConfig, load_config
from filesearch.constants import CHUNKING_PRESETS, GEMINI_MODELS
from filesearch.exceptions import FileSearchError
from filesearch.formatter import (
    display_documents,
    display_operation,
    display_query_result,
    display_stores,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

app = typer.Typer(
    help="File Search - manage Gemini File Search stores and ask grounded questions",
    rich_markup_mode="rich",
)
console = Console()

stores_app = typer.Typer(help="Manage File Search stores")
app.add_typer(stores_app, name="stores")

docs_app = typer.Typer(help="Upload, list and delete documents in a store")
app.add_typer(docs_app, name="docs")

operation_app = typer.Typer(help="Inspect long-running import operations")
app.add_typer(operation_app, name="operation")

config_app = typer.Typer(help="Manage configuration (API keys)")
app.add_typer(config_app, name="config")


@app.callback()
def app_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to file_search.json"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration and set up logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    ctx.obj = load_config(config_path)


def get_config(ctx: typer.Context) -> FileSearchConfig:
    if ctx.obj is None:
        ctx.obj = load_config()
    return ctx.obj


def build_client(config: FileSearchConfig) -> FileSearchClient:
    if not config.api_key:
        console.print(
            "[red]Gemini API key not found.[/red]\n"
            "Set it with: [bold]filesearch config set-api-key YOUR_KEY[/bold]\n"
            "Or: export GEMINI_API_KEY=your-key"
        )
        raise typer.Exit(code=1)
    return FileSearchClient.from_api_key(config.api_key)


def run_with_client(
    config: FileSearchConfig, func: Callable[[FileSearchClient], Awaitable[T]]
) -> T:
    """Run *func* with a fresh client; provider errors exit with code 1."""
    client = build_client(config)

    async def _main() -> T:
        try:
            return await func(client)
        finally:
            await client.close()

    try:
        return asyncio.run(_main())
    except FileSearchError as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


# ----------------------------------------------------------------------
# Stores
# ----------------------------------------------------------------------


@stores_app.command("list")
def stores_list(
    ctx: typer.Context,
    page_size: Annotated[
        int | None, typer.Option("--page-size", "-n", help="Stores per page")
    ] = None,
) -> None:
    """List File Search stores with their document counters."""
    config = get_config(ctx)
    stores = run_with_client(
        config, lambda c: c.list_stores(page_size or config.page_size)
    )
    display_stores(stores, console)


@stores_app.command("create")
def stores_create(
    ctx: typer.Context,
    display_name: Annotated[str, typer.Argument(help="Human-readable store name")],
) -> None:
    """Create a new File Search store."""
    store = run_with_client(get_config(ctx), lambda c: c.create_store(display_name))
    console.print(f"[green]✓[/green] Created store [bold]{store.name}[/bold] ({display_name})")


@stores_app.command("get")
def stores_get(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Store resource name")],
) -> None:
    """Show a single store."""
    store = run_with_client(get_config(ctx), lambda c: c.get_store(name))
    if store is None:
        console.print(f"[yellow]Store not found:[/yellow] {name}")
        raise typer.Exit(code=1)
    display_stores([store], console)


@stores_app.command("delete")
def stores_delete(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Store resource name")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a store and every document in it."""
    if not yes:
        typer.confirm(f"Delete {name} and all of its documents?", abort=True)
    run_with_client(get_config(ctx), lambda c: c.delete_store(name))
    console.print(f"[green]✓[/green] Deleted store {name}")


# ----------------------------------------------------------------------
# Documents
# ----------------------------------------------------------------------


@docs_app.command("list")
def docs_list(
    ctx: typer.Context,
    store: Annotated[str, typer.Argument(help="Store resource name")],
    page_size: Annotated[
        int | None, typer.Option("--page-size", "-n", help="Documents per page")
    ] = None,
) -> None:
    """List documents in a store."""
    config = get_config(ctx)
    documents = run_with_client(
        config, lambda c: c.list_documents(store, page_size or config.page_size)
    )
    display_documents(documents, store, console)


@docs_app.command("upload")
def docs_upload(
    ctx: typer.Context,
    store: Annotated[str, typer.Argument(help="Target store resource name")],
    path: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="File to upload"),
    ],
    display_name: Annotated[
        str | None, typer.Option("--name", help="Display name (defaults to file name)")
    ] = None,
    mime_type: Annotated[
        str | None, typer.Option("--mime-type", help="Content type (guessed if omitted)")
    ] = None,
    metadata: Annotated[
        str | None,
        typer.Option(
            "--metadata",
            "-m",
            help='Custom metadata as JSON, e.g. \'{"category": "technical", "pages": 5}\'',
        ),
    ] = None,
    chunking: Annotated[
        str | None,
        typer.Option("--chunking", help=f"Chunking preset: {', '.join(CHUNKING_PRESETS)}"),
    ] = None,
    wait: Annotated[
        bool, typer.Option("--wait", "-w", help="Poll until the import finishes")
    ] = False,
) -> None:
    """Upload a file and import it into a store."""
    from filesearch.upload.orchestrator import UploadOrchestrator
    from filesearch.upload.poller import OperationPoller

    config = get_config(ctx)
    data = path.read_bytes()
    name = display_name or path.name

    async def _upload(client: FileSearchClient) -> Any:
        poller = OperationPoller(
            client,
            interval=config.poll_interval_seconds,
            max_attempts=config.poll_max_attempts,
            timeout=config.poll_timeout_seconds,
        )
        orchestrator = UploadOrchestrator(
            client, poller=poller, default_chunking=config.default_chunking
        )
        result = await orchestrator.upload_document(
            store,
            data,
            name,
            mime_type=mime_type,
            custom_metadata=metadata,
            chunking=chunking,
        )
        console.print(
            f"[green]✓[/green] Uploaded [bold]{name}[/bold] -> operation {result.operation_name}"
        )
        if not wait:
            return None
        with console.status("Waiting for import to finish..."):
            return await poller.poll_until_done(result.operation_name)

    op = run_with_client(config, _upload)
    if op is not None:
        display_operation(op, console)
        if op.error:
            raise typer.Exit(code=1)


@docs_app.command("delete")
def docs_delete(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Document resource name")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete an indexed document and its chunks."""
    if not yes:
        typer.confirm(f"Delete {name}?", abort=True)
    run_with_client(get_config(ctx), lambda c: c.delete_document(name))
    console.print(f"[green]✓[/green] Deleted document {name}")


# ----------------------------------------------------------------------
# Operations
# ----------------------------------------------------------------------


@operation_app.command("status")
def operation_status(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Operation resource name")],
) -> None:
    """Fetch the current status of an operation once."""
    op = run_with_client(get_config(ctx), lambda c: c.get_operation_status(name))
    display_operation(op, console)


@operation_app.command("wait")
def operation_wait(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Operation resource name")],
    interval: Annotated[
        float | None, typer.Option("--interval", help="Seconds between polls")
    ] = None,
    max_attempts: Annotated[
        int | None, typer.Option("--max-attempts", help="Maximum status requests")
    ] = None,
) -> None:
    """Poll an operation until it is done."""
    from filesearch.upload.poller import OperationPoller

    config = get_config(ctx)

    async def _wait(client: FileSearchClient) -> Any:
        poller = OperationPoller(
            client,
            interval=config.poll_interval_seconds,
            max_attempts=config.poll_max_attempts,
            timeout=config.poll_timeout_seconds,
        )
        with console.status(f"Waiting for {name}..."):
            return await poller.poll_until_done(
                name, interval=interval, max_attempts=max_attempts
            )

    op = run_with_client(config, _wait)
    display_operation(op, console)
    if op.error:
        raise typer.Exit(code=1)


# ----------------------------------------------------------------------
# Query
# ----------------------------------------------------------------------


@app.command()
def query(
    ctx: typer.Context,
    message: Annotated[str, typer.Argument(help="Question to ask")],
    store: Annotated[
        list[str],
        typer.Option("--store", "-s", help="Store resource name (repeatable)"),
    ],
    filter: Annotated[
        list[str] | None,
        typer.Option(
            "--filter",
            "-f",
            help="Metadata filter (key:value, key:>=value). Repeat to AND filters.",
        ),
    ] = None,
    model: Annotated[
        str | None, typer.Option("--model", "-m", help="Gemini model")
    ] = None,
    limit: Annotated[
        int, typer.Option("--limit", "-l", help="Max citations to display")
    ] = 10,
) -> None:
    """Ask a question grounded in the documents of one or more stores."""
    from filesearch.search.citations import build_metadata_filter
    from filesearch.search.client import FileSearchQueryClient

    config = get_config(ctx)
    metadata_filter = build_metadata_filter(filter) if filter else None
    if metadata_filter:
        console.print(f"[dim]Filter:[/dim] {metadata_filter}")

    async def _query(client: FileSearchClient) -> Any:
        search = FileSearchQueryClient(client.genai_client, default_model=config.default_model)
        return await search.query(store, message, model=model, metadata_filter=metadata_filter)

    result = run_with_client(config, _query)
    display_query_result(
        result, terminal_width=shutil.get_terminal_size().columns, limit=limit, console=console
    )


@app.command()
def models(ctx: typer.Context) -> None:
    """List Gemini models that support the File Search tool."""
    config = get_config(ctx)
    table = Table(title="File Search Models")
    table.add_column("Model", style="cyan")
    table.add_column("Label")
    table.add_column("Description")
    for m in GEMINI_MODELS:
        marker = " [green](default)[/green]" if m.value == config.default_model else ""
        table.add_row(m.value + marker, m.label, m.description)
    console.print(table)


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port")] = 8000,
) -> None:
    """Run the HTTP proxy used by the browser UI."""
    import uvicorn

    from filesearch.api.app import create_app

    config = get_config(ctx)
    try:
        api = create_app(config=config)
    except RuntimeError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    uvicorn.run(api, host=host, port=port)


# ----------------------------------------------------------------------
# Config
# ----------------------------------------------------------------------


@config_app.command("set-api-key")
def set_api_key(
    key: Annotated[
        str,
        typer.Argument(help="Gemini API key to store in system keyring"),
    ],
) -> None:
    """Store the Gemini API key in the system keyring."""
    if not key or key.strip() == "":
        console.print("[red]Error:[/red] API key cannot be empty")
        raise typer.Exit(code=1)

    try:
        keyring.set_password(SERVICE_NAME, KEY_NAME, key)
    except KeyringError as e:
        console.print(f"[red]Error:[/red] Failed to store API key: {e}")
        raise typer.Exit(code=1)
    console.print(
        f"[green]✓[/green] API key stored successfully in system keyring "
        f"(service: {SERVICE_NAME})"
    )


@config_app.command("get-api-key")
def show_api_key() -> None:
    """Retrieve and display the stored Gemini API key (masked)."""
    api_key = keyring.get_password(SERVICE_NAME, KEY_NAME)
    if not api_key:
        console.print(
            "[yellow]No API key found in keyring.[/yellow]\n"
            "Set it with: [bold]filesearch config set-api-key YOUR_KEY[/bold]"
        )
        raise typer.Exit(code=1)

    # Mask all but first 8 characters
    if len(api_key) > 8:
        masked = api_key[:8] + "*" * (len(api_key) - 8)
    else:
        masked = api_key[:2] + "*" * max(1, len(api_key) - 2)

    console.print(f"[green]API key:[/green] {masked}")
    console.print(f"[dim](stored in service: {SERVICE_NAME})[/dim]")


@config_app.command("remove-api-key")
def remove_api_key() -> None:
    """Delete the stored Gemini API key from the system keyring."""
    if not keyring.get_password(SERVICE_NAME, KEY_NAME):
        console.print(
            "[yellow]Warning:[/yellow] No API key found in keyring.\n"
            "Nothing to remove."
        )
        return

    try:
        keyring.delete_password(SERVICE_NAME, KEY_NAME)
    except KeyringError as e:
        console.print(f"[red]Error:[/red] Failed to remove API key: {e}")
        raise typer.Exit(code=1)
    console.print(
        f"[green]✓[/green] API key removed from system keyring (service: {SERVICE_NAME})"
    )


if __name__ == "__main__":
    app()
