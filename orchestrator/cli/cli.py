#!/usr/bin/env python3
"""Orchestrator CLI - Command-line interface for the orchestrator backend."""

import asyncio
import json
import sys
from typing import Optional

import click
import httpx
from rich.console import Console
from rich.table import Table

from ..common.config import get_settings
from ..common.errors import OrchestratorError
from ..core.logger import configure_logging
from ..core.resolver import InputSchemaResolver
from ..schemas.workflow import WorkflowDataInputSchema
from ..services.data_index import DataIndexService
from ..services.sonataflow import SonataFlowService
from ..services.workflows import WorkflowSourceLookup

console = Console()


@click.group()
@click.version_option(version="0.1.0", prog_name="orchestrator")
def cli():
    """Orchestrator - HTTP façade over a serverless workflow engine.

    Serves workflow execution, instance inspection and input form
    resolution on top of the workflow engine and its data index.
    """
    pass


@cli.command()
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind to",
    show_default=True,
)
@click.option(
    "--port",
    default=8000,
    type=int,
    help="Port to bind to",
    show_default=True,
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload for development",
)
def web(host: str, port: int, reload: bool):
    """Start the orchestrator HTTP API.

    Examples:
        orchestrator web                       # Start on 127.0.0.1:8000
        orchestrator web --host 0.0.0.0        # Bind to all interfaces
        orchestrator web --reload              # Enable auto-reload for development
    """
    import uvicorn

    console.print("[bold green]Starting orchestrator API...[/bold green]")
    console.print(f"[blue]API docs: http://{host}:{port}/docs[/blue]")

    try:
        uvicorn.run(
            "orchestrator.web.main:app",
            host=host,
            port=port,
            reload=reload,
            log_level="info",
            access_log=not reload,
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")


@cli.command("input-schema")
@click.argument("workflow_id")
@click.option("--instance-id", "-i", default=None, help="Instance to pre-fill from")
@click.option(
    "--assessment-instance-id",
    "-a",
    default=None,
    help="Assessment instance used when the instance has no data",
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw response")
def input_schema(
    workflow_id: str,
    instance_id: Optional[str],
    assessment_instance_id: Optional[str],
    as_json: bool,
):
    """Resolve the input form of a workflow.

    Examples:
        orchestrator input-schema onboarding
        orchestrator input-schema onboarding -i 3b7a8e32
        orchestrator input-schema onboarding -a 9c1d2e3f --json
    """
    settings = get_settings()
    configure_logging(settings["log_level"])

    async def _resolve() -> WorkflowDataInputSchema:
        async with httpx.AsyncClient(timeout=settings["request_timeout"]) as client:
            data_index = DataIndexService(client, settings["data_index_url"])
            sonataflow = SonataFlowService(client, settings["sonataflow_url"])
            resolver = InputSchemaResolver(
                definitions=WorkflowSourceLookup(data_index, sonataflow),
                runtime=sonataflow,
                instances=data_index,
            )
            return await resolver.resolve(
                workflow_id,
                instance_id=instance_id,
                assessment_instance_id=assessment_instance_id,
            )

    try:
        result = asyncio.run(_resolve())
    except OrchestratorError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "workflowItem": result["workflow_item"],
                    "schemas": [fragment["schema"] for fragment in result["schemas"]],
                    "initialState": {
                        "values": result["initial_state"]["values"],
                        "readonlyKeys": result["initial_state"]["readonly_keys"],
                    },
                },
                indent=2,
            )
        )
        return

    console.print(
        f"[bold]{workflow_id}[/bold] ({result['workflow_item']['uri']})"
    )

    if not result["schemas"]:
        console.print("[yellow]No input required[/yellow]")
        return

    readonly_keys = set(result["initial_state"]["readonly_keys"])
    for fragment, values in zip(
        result["schemas"], result["initial_state"]["values"]
    ):
        table = Table(title=f"{fragment['title']} [dim]({fragment['id']})[/dim]")
        table.add_column("Field", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Value")
        table.add_column("Read-only", justify="center")

        for field in fragment["fields"]:
            name = field["name"]
            field_type = (
                field["schema"].get("type", "") if isinstance(field["schema"], dict) else ""
            )
            value = json.dumps(values[name]) if name in values else "[dim]-[/dim]"
            table.add_row(
                name,
                str(field_type),
                value,
                "[yellow]yes[/yellow]" if name in readonly_keys else "",
            )

        console.print(table)


if __name__ == "__main__":
    cli()
