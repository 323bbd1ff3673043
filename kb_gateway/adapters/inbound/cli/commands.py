"""CLI interface for the Knowledge Base Gateway."""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ....config.logging import setup_logging
from ....config.settings import settings
from ....core.services import KnowledgeBaseService
from ...common.exception_handler import format_exception_json

app = typer.Typer(
    name="kbgw",
    help="Knowledge Base Gateway - search and manage Flowise, Supabase and Pinecone stores",
    add_completion=False,
)

console = Console(force_terminal=True, legacy_windows=False)


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.
    """
    error_data = format_exception_json(exc, include_trace=settings.debug)

    if settings.debug:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, default=str),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
        return

    error_code = error_data["error"].get("code", "UNKNOWN")
    console.print(f"\n[red]Error [{error_code}]:[/] {error_data['error']['message']}")
    console.print(f"[dim]Type: {error_data['error']['type']}[/]")
    console.print("[dim]Set DEBUG=true for full details[/]")


def get_service() -> KnowledgeBaseService:
    """Build the service, exiting with a readable error when misconfigured."""
    from ....composition.container import get_knowledge_base_service

    setup_logging(settings.log_level, json_format=settings.log_json)
    try:
        return get_knowledge_base_service()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "kb_gateway.adapters.inbound.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def stores(
    target: Optional[str] = typer.Option(None, help="Only list this provider's stores"),
) -> None:
    """List document stores across the configured providers."""
    service = get_service()
    try:
        with console.status("[bold green]Listing stores...[/]"):
            found = asyncio.run(service.list_stores(target))
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not found:
        console.print("[yellow]No stores found.[/]")
        return

    table = Table(title="Document Stores")
    table.add_column("Provider", style="cyan")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Documents", justify="right")
    for store in found:
        table.add_row(
            store.provider.value if store.provider else "-",
            store.id,
            store.name,
            "-" if store.document_count is None else str(store.document_count),
        )
    console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="Free-text query"),
    target: Optional[list[str]] = typer.Option(None, help="Provider(s) to search"),
    store_id: Optional[str] = typer.Option(None, "--store-id", help="Restrict to one store"),
    limit: int = typer.Option(10, help="Maximum results to show"),
) -> None:
    """Search every configured knowledge base."""
    service = get_service()
    try:
        with console.status("[bold green]Searching...[/]"):
            results = asyncio.run(service.search(query, targets=target or None, store_id=store_id))
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No results.[/]")
        return

    for rank, result in enumerate(results[:limit], start=1):
        score = "n/a" if result.similarity is None else f"{result.similarity:.3f}"
        provider = result.provider.value if result.provider else "?"
        console.print(
            Panel(
                result.content,
                title=f"[bold]{rank}. {provider}[/] / {result.store_name or result.store_id}",
                subtitle=f"similarity {score}",
                border_style="blue",
            )
        )


@app.command()
def add(
    content: str = typer.Argument(..., help="Document text"),
    metadata: str = typer.Option("{}", help="Metadata as a JSON object"),
    target: Optional[list[str]] = typer.Option(None, help="Provider(s) to ingest into"),
    store_id: Optional[str] = typer.Option(None, "--store-id", help="Only this store"),
) -> None:
    """Add a document to one store or to every store of the targets."""
    try:
        parsed = json.loads(metadata)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/] --metadata is not valid JSON ({e.msg})")
        raise typer.Exit(2)

    service = get_service()
    try:
        outcomes = asyncio.run(
            service.add_document(content, parsed, targets=target or None, store_id=store_id)
        )
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    for outcome in outcomes:
        if outcome.ok:
            console.print(f"[green]OK[/] {outcome.target.value} / {outcome.store_id}")
        else:
            console.print(
                f"[red]FAILED[/] {outcome.target.value} / {outcome.store_id or '-'}: {outcome.error}"
            )
    if any(not outcome.ok for outcome in outcomes):
        raise typer.Exit(1)


@app.command()
def delete(
    document_id: str = typer.Argument(..., help="Document (or loader) id"),
    store_id: str = typer.Option(..., "--store-id", help="Store holding the document"),
    target: str = typer.Option(settings.default_delete_target, help="Provider holding the document"),
) -> None:
    """Delete a document from a single provider store."""
    service = get_service()
    try:
        deleted = asyncio.run(service.delete_document(document_id, [target], store_id=store_id))
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if deleted:
        console.print(f"[green]Deleted[/] {document_id} from {target} store {store_id}")
    else:
        console.print("[yellow]Nothing deleted.[/]")


if __name__ == "__main__":
    app()
