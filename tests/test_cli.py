"""
Tests for the trustee CLI

Every invocation opens the trustee afresh from the database file, so these
tests also exercise replay and the SQLite ledger.
"""

import json
from pathlib import Path

import pytest
from prometheus_client import REGISTRY
from typer.testing import CliRunner

import vesting_trustee.cli.main as cli_main
from tests.helpers import MONTH, START, YEAR
from vesting_trustee.cli.main import app
from vesting_trustee.kernel.time import DAY

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> Path:
    """Initialized database with a funded generic trustee"""
    path = tmp_path / "trustee.db"
    result = runner.invoke(
        app, ["init", "--db", str(path), "--admin", "admin", "--allocation", "1000000"]
    )
    assert result.exit_code == 0, result.output

    result = runner.invoke(
        app,
        ["ledger", "mint", "--db", str(path), "--to", "vesting-trustee", "--units", "10000"],
    )
    assert result.exit_code == 0, result.output
    return path


def invoke(db: Path, *args: str):
    return runner.invoke(app, [*args, "--db", str(db)])


def create_alice(db: Path, value: int = 1000):
    return invoke(
        db,
        "grant", "create",
        "--holder", "alice",
        "--value", str(value),
        "--start", str(START),
        "--cliff", str(START + MONTH),
        "--end", str(START + YEAR),
        "--installment", "1",
        "--caller", "admin",
        "--now", str(START),
    )


class TestInit:
    def test_init_creates_database_and_config(self, tmp_path: Path) -> None:
        path = tmp_path / "new.db"

        result = runner.invoke(app, ["init", "--db", str(path), "--admin", "root"])

        assert result.exit_code == 0
        assert "✓ Initialized trustee database" in result.output
        assert path.exists()
        config = json.loads(path.with_suffix(".json").read_text())
        assert config["admins"] == ["root"]

    def test_init_refuses_existing_database(self, db: Path) -> None:
        result = runner.invoke(app, ["init", "--db", str(db)])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_rejects_shared_trustee_identity(self, tmp_path: Path) -> None:
        path = tmp_path / "shared.db"

        result = runner.invoke(
            app,
            [
                "init", "--db", str(path),
                "--trustee-id", "pool",
                "--foundation-trustee-id", "pool",
            ],
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert not path.exists()
        assert not path.with_suffix(".json").exists()

    def test_missing_database(self, tmp_path: Path) -> None:
        result = invoke(tmp_path / "missing.db", "total")

        assert result.exit_code == 1
        assert "Database not found" in result.output


class TestLedgerCommands:
    def test_mint_and_balance(self, db: Path) -> None:
        result = invoke(db, "ledger", "balance", "--identity", "vesting-trustee")

        assert result.exit_code == 0
        assert result.stdout.strip() == "10000"


class TestGrantCommands:
    def test_create_and_show(self, db: Path) -> None:
        result = create_alice(db)
        assert result.exit_code == 0, result.output
        assert "✓ Granted 1000 to alice" in result.output

        result = invoke(db, "grant", "show", "--holder", "alice")
        grant = json.loads(result.stdout)
        assert grant["value"] == 1000
        assert grant["cliff"] == START + MONTH
        assert grant["transferred"] == 0

    def test_vested_query(self, db: Path) -> None:
        create_alice(db)

        result = invoke(db, "grant", "vested", "--holder", "alice", "--at", str(START + MONTH))
        assert result.stdout.strip() == "83"

        result = invoke(db, "grant", "vested", "--holder", "bob", "--at", str(START))
        assert result.stdout.strip() == "0"

    def test_unlock_and_revoke(self, db: Path) -> None:
        create_alice(db)

        result = invoke(db, "grant", "unlock", "--caller", "alice", "--now", str(START + MONTH))
        assert result.exit_code == 0, result.output
        assert "✓ Unlocked 83 for alice" in result.output

        result = invoke(db, "grant", "unlock", "--caller", "alice", "--now", str(START + MONTH))
        assert "Nothing to unlock" in result.output

        result = invoke(
            db, "grant", "revoke", "--holder", "alice", "--caller", "admin",
            "--now", str(START + MONTH),
        )
        assert result.exit_code == 0, result.output
        assert "Refunded 917 to admin" in result.output

        assert invoke(db, "ledger", "balance", "--identity", "alice").stdout.strip() == "83"
        assert invoke(db, "ledger", "balance", "--identity", "admin").stdout.strip() == "917"
        assert invoke(db, "total").stdout.strip() == "0"

    def test_rejections_exit_with_error(self, db: Path) -> None:
        create_alice(db)

        result = create_alice(db)
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "already has a grant" in result.output

        result = invoke(
            db, "grant", "revoke", "--holder", "alice", "--caller", "alice",
            "--now", str(START),
        )
        assert result.exit_code == 1
        assert "not an admin" in result.output

    def test_insufficient_custody(self, db: Path) -> None:
        result = create_alice(db, value=10_001)

        assert result.exit_code == 1
        assert "exceeds uncommitted custody" in result.output

    def test_list(self, db: Path) -> None:
        assert "No grants" in invoke(db, "grant", "list").output

        create_alice(db)
        result = invoke(db, "grant", "list")

        assert "Grants (1):" in result.output
        assert "alice: 0/1000 transferred" in result.output

    def test_show_missing_grant(self, db: Path) -> None:
        result = invoke(db, "grant", "show", "--holder", "nobody")

        assert result.exit_code == 1


class TestFoundationCommands:
    @pytest.fixture
    def funded(self, db: Path) -> Path:
        invoke(db, "ledger", "mint", "--to", "foundation-trustee", "--units", "1000000")
        return db

    def test_grant_unlock_revoke(self, funded: Path) -> None:
        result = invoke(
            funded, "foundation", "grant", "--start-time", str(START), "--caller", "admin",
            "--now", str(START),
        )
        assert result.exit_code == 0, result.output
        assert "✓ Granted 1000000 to foundation" in result.output

        year = 365 * DAY
        result = invoke(
            funded, "foundation", "unlock", "--caller", "foundation", "--now", str(START + year)
        )
        assert "✓ Unlocked 200000 for foundation" in result.output

        result = invoke(funded, "foundation", "vested", "--at", str(START + 2 * year))
        assert result.stdout.strip() == "360000"

        result = invoke(
            funded, "foundation", "revoke", "--caller", "admin", "--now", str(START + year)
        )
        assert result.exit_code == 0, result.output
        assert "Refunded 800000 to admin" in result.output

        result = invoke(funded, "foundation", "show")
        assert result.exit_code == 1

    def test_unlock_by_other_identity(self, funded: Path) -> None:
        invoke(
            funded, "foundation", "grant", "--start-time", str(START), "--caller", "admin",
            "--now", str(START),
        )

        result = invoke(funded, "foundation", "unlock", "--caller", "alice", "--now", str(START))

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_schedule_uses_database_config(self, db: Path) -> None:
        result = invoke(db, "foundation", "schedule")

        buckets = json.loads(result.stdout)
        assert len(buckets) == 60
        assert buckets[0] == 200_000
        assert sum(buckets) == 1_000_000


def test_schedule_without_database() -> None:
    result = runner.invoke(app, ["foundation", "schedule"])

    buckets = json.loads(result.stdout)
    assert buckets[0] == 1_200_000_000_000_000_000_000_000_000_000
    assert buckets[7] == 251_658_240_000_000_000_000_000_000_000
    assert sum(buckets) == 6 * 10**30


def test_schedule_custom_parameters() -> None:
    result = runner.invoke(
        app, ["foundation", "schedule", "--allocation", "1000", "--years", "3", "--percent", "50"]
    )

    assert json.loads(result.stdout) == [500, 250, 250]


def test_schedule_rejects_bad_percent() -> None:
    result = runner.invoke(app, ["foundation", "schedule", "--percent", "101"])

    assert result.exit_code == 1


class TestServeMetrics:
    @pytest.fixture
    def served_ports(self, monkeypatch) -> list[int]:
        ports: list[int] = []

        def stop(seconds: float) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(cli_main, "start_metrics_server", ports.append)
        monkeypatch.setattr(cli_main.time, "sleep", stop)
        return ports

    def test_serves_until_interrupted(self, served_ports: list[int]) -> None:
        result = runner.invoke(app, ["serve-metrics", "--port", "9123"])

        assert result.exit_code == 0, result.output
        assert served_ports == [9123]
        assert "✓ Serving metrics at http://0.0.0.0:9123/metrics" in result.output
        assert "Shutting down metrics server" in result.output

    def test_replays_database_before_serving(
        self, db: Path, served_ports: list[int]
    ) -> None:
        create_alice(db, value=700)

        result = invoke(db, "serve-metrics")

        assert result.exit_code == 0, result.output
        assert served_ports == [9090]
        assert REGISTRY.get_sample_value(
            "trustee_total_vesting_units", {"trustee_id": "vesting-trustee"}
        ) == 700.0

    def test_missing_database(self, tmp_path: Path, served_ports: list[int]) -> None:
        result = invoke(tmp_path / "missing.db", "serve-metrics")

        assert result.exit_code == 1
        assert served_ports == []
