"""
Vesting Trustee CLI

Command-line interface for running a trustee on a local SQLite database.
The database holds the event log and the asset ledger; the configuration is
kept next to it as JSON.

Usage:
    trustee init --db trustee.db --admin admin
    trustee ledger mint --to vesting-trustee --units 1000
    trustee grant create --holder alice --value 1000 --start 0 --cliff 2592000 \\
        --end 31104000 --installment 1 --caller admin
    trustee grant unlock --caller alice
    trustee grant vested --holder alice --at 15552000
    trustee foundation schedule
    trustee serve-metrics --db trustee.db --port 9090
"""

import json
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from vesting_trustee.foundation.schedule import generate_annual_schedule
from vesting_trustee.kernel.config import KIN_FOUNDATION_ALLOCATION, TrusteeConfig
from vesting_trustee.kernel.errors import TrusteeError
from vesting_trustee.kernel.ledger import SQLiteLedger
from vesting_trustee.kernel.logging import configure_from_environment
from vesting_trustee.kernel.metrics import start_metrics_server
from vesting_trustee.trustee import VestingTrustee

# Logs go to stderr so stdout stays machine-readable
configure_from_environment()

app = typer.Typer(
    name="trustee",
    help="Vesting trustee - time-locked token grants",
    add_completion=False,
)

ledger_app = typer.Typer(help="Asset ledger commands")
grant_app = typer.Typer(help="Generic grant commands")
foundation_app = typer.Typer(help="Foundation annual-schedule grant commands")

app.add_typer(ledger_app, name="ledger")
app.add_typer(grant_app, name="grant")
app.add_typer(foundation_app, name="foundation")

DEFAULT_DB = Path(".trustee.db")

DbOption = Annotated[Optional[Path], typer.Option("--db", help="Database path")]
NowOption = Annotated[
    Optional[int],
    typer.Option("--now", help="Unix time to act at (defaults to the system clock)"),
]
CallerOption = Annotated[str, typer.Option("--caller", help="Authenticated caller identity")]


def config_path(db: Path) -> Path:
    return db.with_suffix(".json")


def get_trustee(db_path: Optional[Path] = None) -> VestingTrustee:
    """Open the trustee stored at db_path"""
    db = db_path or DEFAULT_DB
    if not db.exists():
        typer.echo(f"Error: Database not found: {db}", err=True)
        typer.echo(f"Run 'trustee init --db {db}' to initialize", err=True)
        raise typer.Exit(1)
    config = TrusteeConfig.load(config_path(db))
    return VestingTrustee(db, SQLiteLedger(db), config)


@contextmanager
def trustee_errors() -> Iterator[None]:
    """Report rejected operations on stderr and exit with status 1"""
    try:
        yield
    except TrusteeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


# Initialization command


@app.command()
def init(
    db: Annotated[Path, typer.Option(help="Database path")] = DEFAULT_DB,
    admin: Annotated[
        Optional[list[str]],
        typer.Option("--admin", help="Admin identity (repeatable)"),
    ] = None,
    trustee_id: Annotated[
        str, typer.Option("--trustee-id", help="Generic trustee identity")
    ] = "vesting-trustee",
    foundation_trustee_id: Annotated[
        str, typer.Option("--foundation-trustee-id", help="Foundation trustee identity")
    ] = "foundation-trustee",
    beneficiary: Annotated[
        str, typer.Option("--beneficiary", help="Foundation beneficiary identity")
    ] = "foundation",
    allocation: Annotated[
        Optional[int],
        typer.Option("--allocation", help="Foundation allocation in base units"),
    ] = None,
) -> None:
    """Initialize a new trustee database"""
    if db.exists():
        typer.echo(f"Error: Database already exists: {db}", err=True)
        raise typer.Exit(1)

    try:
        config = TrusteeConfig(
            trustee_id=trustee_id,
            foundation_trustee_id=foundation_trustee_id,
            foundation_beneficiary=beneficiary,
            foundation_allocation=allocation or KIN_FOUNDATION_ALLOCATION,
            admins=admin or ["admin"],
        )
    except ValueError as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(1)
    config.save(config_path(db))
    VestingTrustee(db, SQLiteLedger(db), config)

    typer.echo(f"✓ Initialized trustee database: {db}")
    typer.echo(f"  Trustee: {config.trustee_id}")
    typer.echo(f"  Foundation trustee: {config.foundation_trustee_id}")
    typer.echo(f"  Admins: {', '.join(config.admins)}")


# Ledger commands


@ledger_app.command("mint")
def ledger_mint(
    to: Annotated[str, typer.Option("--to", help="Receiving identity")],
    units: Annotated[int, typer.Option("--units", help="Units to mint")],
    db: DbOption = None,
) -> None:
    """Mint units on the local ledger (funds custody)"""
    trustee = get_trustee(db)
    trustee.ledger.mint(to, units)
    typer.echo(f"✓ Minted {units} to {to}")


@ledger_app.command("balance")
def ledger_balance(
    identity: Annotated[str, typer.Option("--identity", help="Identity to look up")],
    db: DbOption = None,
) -> None:
    """Show the ledger balance of an identity"""
    trustee = get_trustee(db)
    typer.echo(str(trustee.ledger.balance_of(identity)))


# Grant commands


@grant_app.command("create")
def grant_create(
    holder: Annotated[str, typer.Option("--holder", help="Grant holder")],
    value: Annotated[int, typer.Option("--value", help="Units to grant")],
    start: Annotated[int, typer.Option("--start", help="Vesting start (unix time)")],
    cliff: Annotated[int, typer.Option("--cliff", help="Cliff (unix time)")],
    end: Annotated[int, typer.Option("--end", help="Vesting end (unix time)")],
    installment: Annotated[
        int, typer.Option("--installment", help="Installment length in seconds")
    ],
    caller: CallerOption,
    revocable: Annotated[
        bool, typer.Option("--revocable/--non-revocable", help="Whether admins may revoke")
    ] = True,
    now: NowOption = None,
    db: DbOption = None,
) -> None:
    """Grant tokens in custody to a holder (admin only)"""
    trustee = get_trustee(db)
    with trustee_errors():
        trustee.grant(
            holder,
            value,
            start,
            cliff,
            end,
            installment,
            revocable,
            caller=caller,
            now=now,
        )

    typer.echo(f"✓ Granted {value} to {holder}")
    typer.echo(f"  Vesting: {start} → {end} (cliff {cliff}, installment {installment}s)")
    typer.echo(f"  Total vesting: {trustee.total_vesting()}")


@grant_app.command("unlock")
def grant_unlock(
    caller: CallerOption,
    now: NowOption = None,
    db: DbOption = None,
) -> None:
    """Unlock the caller's vested tokens"""
    trustee = get_trustee(db)
    with trustee_errors():
        events = trustee.unlock_vested_tokens(caller=caller, now=now)

    if not events:
        typer.echo("Nothing to unlock")
        return
    typer.echo(f"✓ Unlocked {events[0].payload['value']} for {caller}")


@grant_app.command("revoke")
def grant_revoke(
    holder: Annotated[str, typer.Option("--holder", help="Grant holder")],
    caller: CallerOption,
    now: NowOption = None,
    db: DbOption = None,
) -> None:
    """Revoke a grant, refunding untransferred units to the caller (admin only)"""
    trustee = get_trustee(db)
    with trustee_errors():
        events = trustee.revoke(holder, caller=caller, now=now)

    event = events[0]
    if event.event_type == "GrantClosed":
        typer.echo(f"✓ Closed fully unlocked grant of {holder}")
    else:
        typer.echo(f"✓ Revoked grant of {holder}")
        typer.echo(f"  Refunded {event.payload['refund']} to {caller}")


@grant_app.command("vested")
def grant_vested(
    holder: Annotated[str, typer.Option("--holder", help="Grant holder")],
    at: Annotated[
        Optional[int], typer.Option("--at", help="Unix time (defaults to now)")
    ] = None,
    db: DbOption = None,
) -> None:
    """Show how many units of a grant have vested"""
    trustee = get_trustee(db)
    typer.echo(str(trustee.vested_tokens(holder, at)))


@grant_app.command("show")
def grant_show(
    holder: Annotated[str, typer.Option("--holder", help="Grant holder")],
    db: DbOption = None,
) -> None:
    """Show a holder's grant as JSON"""
    trustee = get_trustee(db)
    grant = trustee.get_grant(holder)
    if grant is None:
        typer.echo(f"Error: No grant for {holder}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(grant.model_dump(), indent=2))


@grant_app.command("list")
def grant_list(db: DbOption = None) -> None:
    """List all grants"""
    trustee = get_trustee(db)
    grants = trustee.list_grants()

    if not grants:
        typer.echo("No grants")
        return

    typer.echo(f"Grants ({len(grants)}):")
    for grant in grants:
        flag = "" if grant.revocable else " [non-revocable]"
        typer.echo(f"  {grant.holder}: {grant.transferred}/{grant.value} transferred{flag}")


@app.command()
def total(db: DbOption = None) -> None:
    """Show units committed to grants and not yet transferred"""
    trustee = get_trustee(db)
    typer.echo(str(trustee.total_vesting()))


# Metrics


@app.command("serve-metrics")
def serve_metrics(
    port: Annotated[int, typer.Option("--port", help="Port to listen on")] = 9090,
    db: DbOption = None,
) -> None:
    """Expose Prometheus metrics at /metrics until interrupted"""
    if db is not None:
        # Replay sets the outstanding-units gauges
        get_trustee(db)

    start_metrics_server(port)
    typer.echo(f"✓ Serving metrics at http://0.0.0.0:{port}/metrics")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        typer.echo("Shutting down metrics server")


# Foundation commands


@foundation_app.command("grant")
def foundation_grant(
    start_time: Annotated[
        int, typer.Option("--start-time", help="Start of schedule year 0 (unix time)")
    ],
    caller: CallerOption,
    now: NowOption = None,
    db: DbOption = None,
) -> None:
    """Grant the foundation allocation (admin only, once)"""
    trustee = get_trustee(db)
    with trustee_errors():
        events = trustee.grant_foundation(start_time, caller=caller, now=now)

    typer.echo(f"✓ Granted {events[0].payload['value']} to {events[0].payload['holder']}")
    typer.echo(f"  Start time: {start_time}")


@foundation_app.command("unlock")
def foundation_unlock(
    caller: CallerOption,
    now: NowOption = None,
    db: DbOption = None,
) -> None:
    """Unlock vested foundation tokens (beneficiary only)"""
    trustee = get_trustee(db)
    with trustee_errors():
        events = trustee.unlock_foundation_tokens(caller=caller, now=now)

    if not events:
        typer.echo("Nothing to unlock")
        return
    typer.echo(f"✓ Unlocked {events[0].payload['value']} for {caller}")


@foundation_app.command("revoke")
def foundation_revoke(
    caller: CallerOption,
    now: NowOption = None,
    db: DbOption = None,
) -> None:
    """Revoke the foundation grant (admin only)"""
    trustee = get_trustee(db)
    with trustee_errors():
        events = trustee.revoke_foundation_grant(caller=caller, now=now)

    typer.echo("✓ Revoked foundation grant")
    typer.echo(f"  Refunded {events[0].payload['refund']} to {caller}")


@foundation_app.command("vested")
def foundation_vested(
    at: Annotated[
        Optional[int], typer.Option("--at", help="Unix time (defaults to now)")
    ] = None,
    db: DbOption = None,
) -> None:
    """Show how many foundation units have vested"""
    trustee = get_trustee(db)
    typer.echo(str(trustee.foundation_vested_tokens(at)))


@foundation_app.command("show")
def foundation_show(db: DbOption = None) -> None:
    """Show the foundation grant as JSON"""
    trustee = get_trustee(db)
    grant = trustee.foundation_grant()
    if grant is None:
        typer.echo("Error: No active foundation grant", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(grant.model_dump(), indent=2))


@foundation_app.command("schedule")
def foundation_schedule(
    allocation: Annotated[
        Optional[int],
        typer.Option("--allocation", help="Allocation in base units (defaults to the db config)"),
    ] = None,
    years: Annotated[
        Optional[int], typer.Option("--years", help="Number of yearly buckets")
    ] = None,
    percent: Annotated[
        Optional[int], typer.Option("--percent", help="Yearly release percentage")
    ] = None,
    db: DbOption = None,
) -> None:
    """Print the annual schedule buckets as JSON"""
    if db is not None and db.exists():
        config = TrusteeConfig.load(config_path(db))
    else:
        config = TrusteeConfig()

    try:
        buckets = generate_annual_schedule(
            allocation or config.foundation_allocation,
            years or config.schedule_years,
            percent or config.annual_installment_percent,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(buckets))


def main() -> None:
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
