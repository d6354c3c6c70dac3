"""
BlueCarbon Registry - Command Line Interface
==============================================
CLI per gestione registro e operazioni lifecycle.

Last Updated: 2026-10-18
Version: 1.0.0

Commands:
- serve: Avvia API REST (uvicorn)
- seed: Carica dataset dimostrativo
- project: Registrazione e verifica progetti
- credit: Mint, acquisto, ritiro crediti
- sensor: Letture sensore
- tx: Storico transazioni
- analytics: Statistiche progetti e mercato

Senza --db la CLI usa la configurazione (BLUECARBON_*), --dev il preset di
sviluppo con dati demo; con --db lavora
su un database SQLite persistente.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Internal imports
from blue_carbon.config import RegistrySettings, get_development_config, get_settings
from blue_carbon.constants import CreditStatus, ProjectStatus
from blue_carbon.errors import BlueCarbonException
from blue_carbon.logging_setup import setup_logging_from_settings
from blue_carbon.registry import Registry, build_registry
from blue_carbon.version import get_build_info


# ============================================================================
# CLI APP
# ============================================================================

app = typer.Typer(
    name="bluecarbon",
    help="BlueCarbon Registry CLI",
    add_completion=False
)

console = Console()


# ============================================================================
# GLOBAL STATE
# ============================================================================

class CLIState:
    """Global CLI state"""
    config: Optional[RegistrySettings] = None
    registry: Optional[Registry] = None


state = CLIState()


def get_registry() -> Registry:
    """Registry della sessione CLI (creato al primo uso)"""
    if state.registry is None:
        with handle_errors():
            state.registry = build_registry(state.config or get_settings())
    return state.registry


def _close_registry() -> None:
    if state.registry is not None:
        state.registry.close()
        state.registry = None


@contextmanager
def handle_errors():
    """Errori del registro -> messaggio + exit code 1"""
    try:
        yield
    except BlueCarbonException as e:
        console.print(f"[red]Error {escape(f'[{e.code}]')}: {escape(e.message)}[/red]")
        raise typer.Exit(1)


STATUS_STYLES = {
    ProjectStatus.PENDING.value: "yellow",
    ProjectStatus.VERIFIED.value: "green",
    ProjectStatus.REJECTED.value: "red",
    CreditStatus.AVAILABLE.value: "green",
    CreditStatus.SOLD.value: "yellow",
    CreditStatus.RETIRED.value: "dim",
}


def _styled(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


# ============================================================================
# SERVER COMMANDS
# ============================================================================

@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (default: config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default: config)")
):
    """Avvia API REST"""
    import uvicorn
    from blue_carbon.api.rest_api import create_app

    config = state.config or get_settings()
    api = create_app(config, registry=get_registry())

    console.print(Panel.fit(
        f"[green]API listening[/green]\n\n"
        f"Host: [cyan]{host or config.api_host}[/cyan]\n"
        f"Port: [cyan]{port or config.api_port}[/cyan]\n"
        f"Backend: [cyan]{config.storage_backend}[/cyan]",
        title=config.registry_name,
        border_style="green"
    ))

    uvicorn.run(
        api,
        host=host or config.api_host,
        port=port or config.api_port,
        log_level=config.log_level.lower()
    )


@app.command("seed")
def seed():
    """Carica dataset dimostrativo (idempotente)"""
    with handle_errors():
        inserted = get_registry().seed()

    table = Table(title="Sample Data")
    table.add_column("Collection", style="cyan")
    table.add_column("Inserted", style="green", justify="right")
    for name, count in inserted.items():
        table.add_row(name, str(count))
    console.print(table)


@app.command("version")
def version():
    """Mostra versione"""
    info = get_build_info()
    console.print(f"BlueCarbon Registry [cyan]{info['version']}[/cyan] (python {info['python']})")


# ============================================================================
# PROJECT COMMANDS
# ============================================================================

project_app = typer.Typer(help="Project registration and verification")
app.add_typer(project_app, name="project")


@project_app.command("register")
def project_register(
    name: str = typer.Option(..., "--name", "-n", help="Project name"),
    project_type: str = typer.Option(..., "--type", "-t", help="mangrove | seagrass | salt_marsh"),
    area: str = typer.Option(..., "--area", "-a", help="Area in hectares"),
    location: str = typer.Option(..., "--location", "-l", help="Location"),
    developer: str = typer.Option(..., "--developer", "-d", help="Developer id / wallet"),
    description: str = typer.Option("", "--description", help="Description"),
    latitude: Optional[str] = typer.Option(None, "--lat", help="Latitude"),
    longitude: Optional[str] = typer.Option(None, "--lng", help="Longitude"),
    estimated_credits: int = typer.Option(0, "--estimated-credits", help="Estimated credits")
):
    """Registra progetto (pending)"""
    with handle_errors():
        project = get_registry().projects.register_project({
            "name": name,
            "description": description,
            "project_type": project_type,
            "area": area,
            "location": location,
            "developer_id": developer,
            "latitude": latitude,
            "longitude": longitude,
            "estimated_credits": estimated_credits,
        })

    console.print(Panel.fit(
        f"[green]Project registered[/green]\n\n"
        f"ID: [cyan]{project.id}[/cyan]\n"
        f"Name: [cyan]{project.name}[/cyan]\n"
        f"Type: [cyan]{project.project_type}[/cyan]\n"
        f"Area: [cyan]{project.area} ha[/cyan]\n"
        f"Status: {_styled(project.status)}",
        title="Project",
        border_style="green"
    ))


@project_app.command("verify")
def project_verify(
    project_id: str = typer.Argument(..., help="Project ID"),
    decision: str = typer.Argument(..., help="approve | reject")
):
    """Esito verifica progetto"""
    with handle_errors():
        project = get_registry().projects.verify_project(project_id, decision)

    verified_at = project.verified_at.isoformat() if project.verified_at else "-"
    console.print(
        f"Project [cyan]{project.id}[/cyan] is now {_styled(project.status)} "
        f"(verified at: {verified_at})"
    )


@project_app.command("list")
def project_list(
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
    project_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by type")
):
    """Lista progetti"""
    projects = get_registry().projects.list_projects(project_type=project_type, status=status)

    if not projects:
        console.print("[yellow]No projects[/yellow]")
        return

    table = Table(title=f"Projects ({len(projects)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Area (ha)", justify="right")
    table.add_column("Location")
    table.add_column("Status")

    for p in projects:
        table.add_row(p.id, p.name, p.project_type, str(p.area), p.location, _styled(p.status))

    console.print(table)


@project_app.command("show")
def project_show(project_id: str = typer.Argument(..., help="Project ID")):
    """Dettaglio progetto"""
    with handle_errors():
        project = get_registry().projects.get_project(project_id)

    table = Table(title="Project", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in project.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


# ============================================================================
# CREDIT COMMANDS
# ============================================================================

credit_app = typer.Typer(help="Carbon credit lifecycle")
app.add_typer(credit_app, name="credit")


@credit_app.command("mint")
def credit_mint(
    project_id: str = typer.Argument(..., help="Verified project ID"),
    amount: int = typer.Option(..., "--amount", "-a", help="Number of credits"),
    owner: str = typer.Option(..., "--owner", "-o", help="Owner id / wallet"),
    price: Optional[str] = typer.Option(None, "--price", "-p", help="Price per credit (default: config)"),
    co2: Optional[str] = typer.Option(None, "--co2", help="Tonnes CO2 per credit (default: config)")
):
    """Mint crediti da progetto verificato"""
    registry = get_registry()
    with handle_errors():
        result = registry.credits.mint_credits(
            project_id,
            amount,
            price if price is not None else registry.config.default_credit_price,
            owner,
            co2_amount=co2,
        )

    console.print(Panel.fit(
        f"[green]Credits minted[/green]\n\n"
        f"Credit ID: [cyan]{result.credit.id}[/cyan]\n"
        f"Token ID: [cyan]{result.credit.token_id}[/cyan]\n"
        f"Amount: [cyan]{result.credit.amount}[/cyan] @ {result.credit.price}\n"
        f"TX: [cyan]{result.transaction.tx_hash[:18]}...[/cyan]",
        title="Mint",
        border_style="green"
    ))


@credit_app.command("purchase")
def credit_purchase(
    credit_id: str = typer.Argument(..., help="Credit ID"),
    buyer: str = typer.Option(..., "--buyer", "-b", help="Buyer id / wallet"),
    amount: Optional[int] = typer.Option(None, "--amount", "-a", help="Amount (default: whole lot)")
):
    """Acquista credito"""
    registry = get_registry()
    with handle_errors():
        if amount is None:
            amount = registry.credits.get_credit(credit_id).amount
        result = registry.credits.purchase_credit(credit_id, buyer, amount)

    console.print(
        f"[green]Credit {result.credit.id} purchased by {buyer}[/green] "
        f"(amount {result.transaction.amount}, tx {result.transaction.tx_hash[:18]}...)"
    )


@credit_app.command("retire")
def credit_retire(
    credit_id: str = typer.Argument(..., help="Credit ID"),
    retired_by: str = typer.Option(..., "--by", help="Retiring holder"),
    reason: Optional[str] = typer.Option(None, "--reason", "-r", help="Retirement reason")
):
    """Ritira credito (terminale)"""
    with handle_errors():
        result = get_registry().credits.retire_credit(credit_id, retired_by, reason=reason)

    console.print(
        f"[green]Credit {result.credit.id} retired by {retired_by}[/green] "
        f"({result.credit.amount} credits, {result.credit.total_co2()} t CO2)"
    )


@credit_app.command("list")
def credit_list(
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Filter by owner"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status")
):
    """Lista crediti"""
    service = get_registry().credits
    credits = service.credits_by_owner(owner) if owner else service.list_credits(status=status)
    if owner and status:
        credits = [c for c in credits if c.status == status]

    if not credits:
        console.print("[yellow]No credits[/yellow]")
        return

    table = Table(title=f"Carbon Credits ({len(credits)})")
    table.add_column("ID", style="cyan")
    table.add_column("Token")
    table.add_column("Project")
    table.add_column("Amount", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Owner")
    table.add_column("Status")

    for c in credits:
        table.add_row(
            c.id, c.token_id, c.project_id, str(c.amount), str(c.price), c.owner_id, _styled(c.status)
        )

    console.print(table)


# ============================================================================
# SENSOR COMMANDS
# ============================================================================

sensor_app = typer.Typer(help="Sensor readings")
app.add_typer(sensor_app, name="sensor")


@sensor_app.command("record")
def sensor_record(
    project_id: str = typer.Argument(..., help="Project ID"),
    sensor_type: str = typer.Argument(..., help="co2 | biomass | soil_carbon | weather"),
    value: str = typer.Argument(..., help="Reading value"),
    unit: str = typer.Argument(..., help="Unit (e.g. t/ha/yr)")
):
    """Registra lettura"""
    with handle_errors():
        reading = get_registry().sensors.record_sensor_reading(project_id, sensor_type, value, unit)

    console.print(
        f"[green]Reading recorded[/green] {reading.sensor_type}={reading.value} {reading.unit} "
        f"at {reading.timestamp.isoformat()}"
    )


@sensor_app.command("list")
def sensor_list(
    project_id: str = typer.Argument(..., help="Project ID"),
    sensor_type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by sensor type")
):
    """Letture progetto (più recenti prima)"""
    readings = get_registry().sensors.readings_for_project(project_id, sensor_type)

    table = Table(title=f"Sensor Data - {project_id}")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Type")
    table.add_column("Value", justify="right")
    table.add_column("Unit")

    for r in readings:
        table.add_row(r.timestamp.isoformat(), r.sensor_type, str(r.value), r.unit)

    console.print(table)


# ============================================================================
# TRANSACTION COMMANDS
# ============================================================================

tx_app = typer.Typer(help="Transaction history")
app.add_typer(tx_app, name="tx")


@tx_app.command("list")
def tx_list(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Filter by user (from or to)")
):
    """Transazioni (più recenti prima)"""
    service = get_registry().credits
    transactions = service.transactions_by_user(user) if user else service.list_transactions()

    table = Table(title=f"Transactions ({len(transactions)})")
    table.add_column("Time", style="cyan")
    table.add_column("Type")
    table.add_column("Credit")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Amount", justify="right")
    table.add_column("Price", justify="right")

    for tx in transactions:
        table.add_row(
            tx.created_at.isoformat(),
            tx.type,
            tx.credit_id,
            tx.from_user_id or "-",
            tx.to_user_id or "-",
            str(tx.amount),
            str(tx.price) if tx.price is not None else "-",
        )

    console.print(table)


# ============================================================================
# ANALYTICS COMMANDS
# ============================================================================

@app.command("analytics")
def analytics():
    """Statistiche progetti e mercato"""
    summary = get_registry().analytics.summary()

    for title, stats in (("Project Stats", summary["projects"]), ("Market Stats", summary["market"])):
        table = Table(title=title, show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        for key, value in stats.items():
            table.add_row(key, str(value))
        console.print(table)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

@app.callback()
def main(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="SQLite database path (forces sqlite backend)"
    ),
    dev: bool = typer.Option(
        False,
        "--dev",
        help="Development preset (dati demo, log DEBUG)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose output (log su console)"
    )
):
    """
    BlueCarbon Registry CLI

    Registra progetti di restauro costiero, emetti e ritira crediti di carbonio.
    """
    config = get_development_config() if dev else get_settings()
    if db is not None:
        config = config.model_copy(update={"storage_backend": "sqlite", "db_path": db})

    state.config = config
    state.registry = None
    ctx.call_on_close(_close_registry)

    setup_logging_from_settings(config, enable_console=verbose)
    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "app",
]


if __name__ == "__main__":
    app()
