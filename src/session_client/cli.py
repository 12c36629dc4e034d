"""Command line interface for Session Client."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigManager
from .exceptions import ConfigurationError
from .factories import ClientServiceFactory, ClientServices
from .session.actions import (
    forgot_password_action,
    login_action,
    logout_action,
    signup_action,
)

logger = logging.getLogger(__name__)

console = Console()


def _load_services(ctx) -> ClientServices:
    """Load configuration and build services, exiting on configuration errors."""
    config_path = ctx.obj.get("config_path")
    try:
        config = ConfigManager(Path(config_path) if config_path else None).load()
    except ConfigurationError as e:
        console.print(f"❌ Configuration error: {e}", style="red")
        sys.exit(1)

    if ctx.obj.get("require_api_root", True) and not config.api_root_url:
        console.print("❌ No API root URL configured", style="red")
        console.print(
            "   💡 Set SESSION_CLIENT_API_ROOT_URL or api_root_url in the config file",
            style="dim",
        )
        sys.exit(1)

    return ClientServiceFactory.create_services(config)


def _fail(message: str) -> None:
    console.print(f"❌ {message}", style="red")
    sys.exit(1)


@click.group()
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="session-client")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """Token session and search client.

    \b
    EXAMPLES:
      session-client login --email me@example.com
      session-client whoami
      session-client search "quarterly report"
      session-client logout
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


@cli.command("login")
@click.option("--email", "-e", help="Account email")
@click.option("--password", "-p", help="Account password")
@click.pass_context
def login(ctx, email: Optional[str], password: Optional[str]):
    """Log in and store the session token."""
    if not email:
        email = click.prompt("Email", type=str)
    if not password:
        password = click.prompt("Password", hide_input=True)

    services = _load_services(ctx)

    async def _run():
        async with services:
            return await login_action(
                services.auth_client, services.session, email.strip(), password
            )

    with console.status("🔐 Authenticating..."):
        result = asyncio.run(_run())

    if not result.success:
        _fail(f"Login failed: {result.error}")

    console.print(f"✅ Logged in as {email}", style="green")


@cli.command("signup")
@click.option("--email", "-e", help="Account email")
@click.option("--password", "-p", help="Account password")
@click.pass_context
def signup(ctx, email: Optional[str], password: Optional[str]):
    """Create an account and log in."""
    if not email:
        email = click.prompt("Email", type=str)
    if not password:
        password = click.prompt(
            "Password", hide_input=True, confirmation_prompt=True
        )

    services = _load_services(ctx)

    async def _run():
        async with services:
            return await signup_action(
                services.auth_client, services.session, email.strip(), password
            )

    with console.status("📝 Creating account..."):
        result = asyncio.run(_run())

    if not result.success:
        _fail(f"Registration failed: {result.error}")

    console.print(f"✅ Registered and logged in as {email}", style="green")


@cli.command("logout")
@click.pass_context
def logout(ctx):
    """Invalidate the session token and clear it locally."""
    services = _load_services(ctx)

    async def _run():
        async with services:
            await logout_action(services.auth_client, services.session, services.cache)

    with console.status("🚪 Logging out..."):
        asyncio.run(_run())

    console.print("✅ Logged out", style="green")


@cli.command("forgot-password")
@click.option("--email", "-e", help="Account email")
@click.pass_context
def forgot_password(ctx, email: Optional[str]):
    """Request a password reset email."""
    if not email:
        email = click.prompt("Email", type=str)

    services = _load_services(ctx)

    async def _run():
        async with services:
            return await forgot_password_action(services.auth_client, email.strip())

    result = asyncio.run(_run())
    if not result.success:
        _fail(f"Password reset failed: {result.error}")

    console.print("✅ If the account exists, a reset email is on its way", style="green")


@cli.command("status")
@click.pass_context
def status(ctx):
    """Show whether a session token is stored."""
    ctx.obj["require_api_root"] = False
    services = _load_services(ctx)

    table = Table(show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("API root", services.config.api_root_url or "(not configured)")
    table.add_row("Authenticated", "yes" if services.session.authenticated else "no")
    table.add_row("Token store", str(services.config.storage_path))
    console.print(table)


@cli.command("whoami")
@click.pass_context
def whoami(ctx):
    """Show the profile of the logged-in user."""
    services = _load_services(ctx)
    if not services.session.authenticated:
        _fail("Not logged in. Run 'session-client login' first")

    async def _run():
        async with services:
            await services.session.fetch_user()
        return services.session.state

    with console.status("👤 Fetching profile..."):
        state = asyncio.run(_run())

    if state.error is not None or state.user is None:
        _fail(f"Could not fetch profile: {state.error_message}")

    user = state.user
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", str(user.id))
    table.add_row("Email", user.email)
    table.add_row("Name", f"{user.first_name} {user.last_name}")
    if user.username:
        table.add_row("Username", user.username)
    console.print(table)


@cli.command("search")
@click.argument("query")
@click.pass_context
def search(ctx, query: str):
    """Run a search and list the hits."""
    services = _load_services(ctx)

    async def _run():
        async with services:
            pipeline = services.create_search_pipeline()
            pipeline.set_query(query)
            pipeline.flush()
            await pipeline.wait_idle()
            return pipeline.state

    with console.status("🔍 Searching..."):
        state = asyncio.run(_run())

    if state.error is not None:
        _fail(f"Search failed: {state.error_message}")

    if not state.results:
        console.print("No results", style="yellow")
        return

    table = Table(title=f"{state.total_hits} hits for '{state.query}'")
    table.add_column("Title", style="cyan")
    table.add_column("Description")
    table.add_column("URL", style="dim")
    for hit in state.results:
        table.add_row(hit.title, hit.description or "", hit.url or "")
    console.print(table)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
