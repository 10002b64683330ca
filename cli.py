#!/usr/bin/env python3
"""
Opportunity Board Operations CLI.

Runs and maintains the backend process. The admin client for board
content is board.py; this script covers the server, configuration,
tests and migrations.

Usage:
    python cli.py --service server --reload --verbose
    python cli.py --service server --action stop
    python cli.py --service health
    python cli.py --service config
    python cli.py --service test --test-type unit
    python cli.py --service migrate --migrate-action upgrade
"""

import os
import signal
import subprocess
import sys
import time
from collections.abc import Callable
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from modules.backend.core.logging import get_logger, setup_logging

ALEMBIC_INI = PROJECT_ROOT / "modules" / "backend" / "migrations" / "alembic.ini"
TEST_TARGETS = {"all": "tests/", "unit": "tests/unit", "integration": "tests/integration"}
MIGRATE_ARGS: dict[str, list[str]] = {
    "current": ["current"],
    "history": ["history", "--verbose"],
}

logger = get_logger(__name__)


def fail(message: str, code: int = 1) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(code)


def load_config():
    """Validated YAML configuration, or exit with the loader's error."""
    from modules.backend.core.config import get_app_config

    try:
        return get_app_config()
    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        fail(f"could not load config/settings: {e}")


def listening_pids(port: int) -> list[int]:
    result = subprocess.run(["lsof", "-ti", f":{port}"], capture_output=True, text=True)
    return [int(pid) for pid in result.stdout.split() if pid.strip()]


def control_server(action: str, port: int | None) -> bool:
    """
    Handle stop/restart/status for the server on ``port``.

    Returns True when the caller should go on to start the server.
    """
    port = port or load_config().application.server.port
    pids = listening_pids(port)
    pid_list = ", ".join(str(pid) for pid in pids)

    if action == "status":
        click.echo(f"Server is running on port {port} (PID: {pid_list})." if pids
                   else f"Server is not running on port {port}.")
        return False

    if not pids:
        click.echo(f"No server running on port {port}.")
    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"pid": pid, "port": port})
    if pids:
        click.echo(f"Server on port {port} stopped (PID: {pid_list}).")

    if action == "restart":
        time.sleep(2)
        return True
    return False


def run_server(host: str | None, port: int | None, reload: bool) -> None:
    """Serve modules.backend.main:app under uvicorn."""
    server = load_config().application.server
    host = host or server.host
    port = port or server.port
    logger.info("Starting server", extra={"host": host, "port": port, "reload": reload})

    cmd = [sys.executable, "-m", "uvicorn", "modules.backend.main:app", "--host", host, "--port", str(port)]
    if reload:
        cmd.append("--reload")

    click.echo(f"Serving the board at http://{host}:{port} (Ctrl+C to stop)\n")
    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server exited with an error", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def _startup_probes() -> list[tuple[str, Callable[[], str]]]:
    def configuration() -> str:
        config = load_config()
        return f"{config.application.name}, default sort {config.listing.default_sort}"

    def secrets() -> str:
        from modules.backend.core.config import get_settings

        return f"admin user {get_settings().admin_username or '(not set)'}"

    def application() -> str:
        from modules.backend.main import get_app

        return f"{len(get_app().routes)} routes"

    def models() -> str:
        import modules.backend.models.audit_log  # noqa: F401
        import modules.backend.models.opportunity  # noqa: F401
        import modules.backend.models.submission  # noqa: F401
        from modules.backend.models.base import Base

        return ", ".join(sorted(Base.metadata.tables))

    return [
        ("YAML configuration", configuration),
        ("Secrets (.env)", secrets),
        ("FastAPI application", application),
        ("Database models", models),
    ]


def check_health() -> None:
    """Offline startup check: config, secrets, app and models all load."""
    failed = 0
    click.echo("Startup checks")
    click.echo("-" * 50)
    for name, probe in _startup_probes():
        try:
            detail = probe()
        except Exception as e:
            failed += 1
            logger.error("Startup check failed", extra={"check": name, "error": str(e)})
            click.echo(f"  {click.style('FAIL', fg='red')}  {name}: {e}")
        else:
            click.echo(f"  {click.style('PASS', fg='green')}  {name} ({detail})")
    click.echo("-" * 50)

    if failed:
        click.echo(click.style(f"{failed} check(s) failed.", fg="yellow"))
        sys.exit(1)
    click.echo(click.style("All checks passed.", fg="green"))


def _echo_tree(values: dict, indent: int = 2) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_tree(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config() -> None:
    """Print every validated YAML section. Secrets live in .env and are never shown."""
    config = load_config()
    for section in ("application", "database", "logging", "features", "listing", "events"):
        click.echo(f"\n[{section}]")
        _echo_tree(getattr(config, section).model_dump())
    logger.info("Configuration displayed")


def run_tests(test_type: str, coverage: bool) -> None:
    cmd = [sys.executable, "-m", "pytest", TEST_TARGETS[test_type], "-v"]
    if coverage:
        cmd += ["--cov=modules", "--cov-report=term-missing"]
    logger.info("Running tests", extra={"type": test_type, "coverage": coverage})
    click.echo(" ".join(cmd) + "\n")
    sys.exit(subprocess.run(cmd, cwd=PROJECT_ROOT).returncode)


def migration_command(migrate_action: str, revision: str, message: str | None) -> list[str]:
    """Alembic arguments for a --migrate-action."""
    if migrate_action in ("upgrade", "downgrade"):
        return [migrate_action, revision]
    if migrate_action == "autogenerate":
        if not message:
            fail("--message/-m is required for autogenerate")
        return ["revision", "--autogenerate", "-m", message]
    return MIGRATE_ARGS[migrate_action]


def run_migrations(migrate_action: str, revision: str, message: str | None) -> None:
    if not ALEMBIC_INI.exists():
        fail(f"{ALEMBIC_INI.relative_to(PROJECT_ROOT)} not found")

    args = migration_command(migrate_action, revision, message)
    logger.info("Running migrations", extra={"alembic_args": args})
    result = subprocess.run([sys.executable, "-m", "alembic", "-c", str(ALEMBIC_INI), *args], cwd=PROJECT_ROOT)
    if result.returncode != 0:
        logger.error("Migration failed", extra={"exit_code": result.returncode})
        sys.exit(result.returncode)
    logger.info("Migration completed")


def show_info() -> None:
    application = load_config().application
    click.echo(f"{application.name} {application.version} ({application.environment})")
    click.echo(application.description)
    click.echo(
        "\nServices (--service):\n"
        "  server     FastAPI server (--action start|stop|restart|status)\n"
        "  health     Check that configuration and the application load\n"
        "  config     Display configuration\n"
        "  test       Run the test suite\n"
        "  migrate    Database migrations\n"
        "  info       Show this information\n"
        "\nBoard administration: python board.py --help"
    )


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "health", "config", "test", "info", "migrate"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Server lifecycle action.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log at INFO level.")
@click.option("--debug", "-d", is_flag=True, help="Log at DEBUG level.")
@click.option("--host", default=None, help="Server host (default from application.yaml).")
@click.option("--port", default=None, type=int, help="Server port (default from application.yaml).")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes.")
@click.option("--test-type", type=click.Choice(list(TEST_TARGETS)), default="all")
@click.option("--coverage", is_flag=True, help="Collect coverage while testing.")
@click.option(
    "--migrate-action",
    type=click.Choice(["upgrade", "downgrade", "current", "history", "autogenerate"]),
    default="current",
)
@click.option("--revision", default="head", help="Target revision for upgrade/downgrade.")
@click.option("-m", "--message", default=None, help="Revision message for autogenerate.")
def main(
    service: str,
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    test_type: str,
    coverage: bool,
    migrate_action: str,
    revision: str,
    message: str | None,
) -> None:
    """
    Opportunity Board operations CLI.

    \b
    Examples:
        python cli.py --service server --reload --verbose
        python cli.py --service server --action restart --port 8099
        python cli.py --service test --test-type unit --coverage
    """
    if not (PROJECT_ROOT / ".project_root").exists():
        fail(".project_root not found; run from the project root")

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level=log_level, format_type="console")
    structlog.contextvars.bind_contextvars(source="cli")
    logger.debug("CLI invoked", extra={"service": service, "action": action})

    if service == "server":
        if action == "start" or control_server(action, port):
            run_server(host, port, reload)
        return

    handlers: dict[str, Callable[[], None]] = {
        "health": check_health,
        "config": show_config,
        "info": show_info,
        "test": lambda: run_tests(test_type, coverage),
        "migrate": lambda: run_migrations(migrate_action, revision, message),
    }
    handlers[service]()


if __name__ == "__main__":
    main()
