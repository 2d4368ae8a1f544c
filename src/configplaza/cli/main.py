"""acp CLI: pull solutions, agents, prompts and MCP configs onto this machine.

Usage:
    acp login                                   # Save your CLI token (~/.acp/token)
    acp logout                                  # Forget the saved token
    acp config --base-url http://localhost:8000 # Point at another server
    acp list agents                             # What you own or have liked
    acp apply --ide cursor                      # Pick a solution, write its files
    acp apply 3f2a... --ide codex --yes         # Non-interactive

Learn: Every request carries the token in the X-CLI-TOKEN header. The
server only returns things you own or have liked, so "like it on the
web, then apply it here" is the normal flow.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import math
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

from configplaza import __version__
from configplaza.cli.writer import IDE_LAYOUTS, plan_files, write_files

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "https://api.ai-config-plaza.com"
TOKEN_ENV = "ACP_CLI_TOKEN"
BASE_URL_ENV = "ACP_CLI_BASE_URL"
CLI_TOKEN_HEADER = "X-CLI-TOKEN"
MIN_TOKEN_LENGTH = 10
PAGE_SIZE = 20

KIND_PATHS = {
    "solutions": "/api/cli/solutions",
    "agents": "/api/cli/agents",
    "prompts": "/api/cli/prompts",
    "mcps": "/api/cli/mcps",
}
AI_TOOLS = ("claude_code", "copilot", "codex", "cursor", "aider", "custom")


def _config_dir() -> Path:
    return Path.home() / ".acp"


def _token_file() -> Path:
    return _config_dir() / "token"


def _base_url_file() -> Path:
    return _config_dir() / "base-url"


def _read_setting(path: Path) -> Optional[str]:
    try:
        value = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    return value or None


def _write_private(path: Path, value: str) -> None:
    """Write a file only the current user can read, from the moment it exists."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(value)
    os.chmod(path, 0o600)


def _token() -> Optional[str]:
    """Env var first, then ~/.acp/token."""
    return os.environ.get(TOKEN_ENV, "").strip() or _read_setting(_token_file())


def _base_url() -> str:
    url = (
        os.environ.get(BASE_URL_ENV, "").strip()
        or _read_setting(_base_url_file())
        or DEFAULT_BASE_URL
    )
    return url.rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the configured server."""
    headers = {"Accept": "application/json"}
    token = _token()
    if token:
        headers[CLI_TOKEN_HEADER] = token
    return httpx.AsyncClient(base_url=_base_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. CliRunner inside an async test) by
    offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _server_message(r: httpx.Response) -> str:
    try:
        error = (r.json() or {}).get("error") or {}
    except ValueError:
        error = {}
    return error.get("message") or r.reason_phrase


def _check(r: httpx.Response) -> None:
    """Turn a non-2xx response into a one-line, actionable error."""
    if r.is_success:
        return
    status = r.status_code
    if status == 401:
        _fail("Authentication failed. Run `acp login` first.")
    if status == 403:
        _fail("Access denied. Check that your token is valid and the item is yours or liked.")
    if status == 404:
        _fail("Not found.")
    if status >= 500:
        _fail(f"Server error ({status}): {_server_message(r)}")
    _fail(f"Request failed ({status}): {_server_message(r)}")


async def _get(c: httpx.AsyncClient, path: str, params: Optional[dict] = None):
    """GET and unwrap the {success, data} envelope."""
    try:
        r = await c.get(path, params=params)
    except httpx.HTTPError as exc:
        _fail(f"Network error talking to {c.base_url}: {exc.__class__.__name__}")
    _check(r)
    return r.json().get("data")


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _require_token() -> None:
    if not _token():
        _fail("Not logged in. Run `acp login` (or set ACP_CLI_TOKEN).")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="acp")
def main():
    """acp: apply shared AI-tool configs to your project.

    Get a CLI token from your profile page on the web, then run `acp login`.
    """


# ---------------------------------------------------------------------------
# acp login / logout / config
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="CLI token (prompted with hidden input if omitted)")
def login(token: Optional[str]):
    """Save a CLI token to ~/.acp/token."""
    token_file = _token_file()
    if token_file.exists() and not click.confirm(
        "A token is already saved. Overwrite it?", default=False
    ):
        click.echo("Kept the existing token.")
        return

    if token is None:
        token = click.prompt("CLI token", hide_input=True)
    token = token.strip()
    if len(token) < MIN_TOKEN_LENGTH:
        _fail(f"That doesn't look like a CLI token (at least {MIN_TOKEN_LENGTH} characters).")

    _write_private(token_file, token)
    click.secho(f"Token saved to {token_file}", fg="green")
    click.echo("Try: acp list solutions")


@main.command()
def logout():
    """Remove the saved CLI token."""
    token_file = _token_file()
    if token_file.exists():
        token_file.unlink()
        click.secho("Logged out.", fg="green")
    else:
        click.echo("No saved token.")
    if os.environ.get(TOKEN_ENV):
        click.secho(f"Note: {TOKEN_ENV} is still set in your environment.", fg="yellow")


@main.command()
@click.option("--base-url", help="Server URL, e.g. http://localhost:8000")
def config(base_url: Optional[str]):
    """Show or change CLI settings."""
    if base_url:
        if not base_url.startswith(("http://", "https://")):
            _fail("--base-url must start with http:// or https://")
        _write_private(_base_url_file(), base_url.rstrip("/"))
        click.secho(f"Base URL saved to {_base_url_file()}", fg="green")

    source = "env" if os.environ.get(TOKEN_ENV, "").strip() else (
        "file" if _read_setting(_token_file()) else "none"
    )
    click.echo(f"Base URL:  {_base_url()}")
    click.echo(f"Token:     {source}")


# ---------------------------------------------------------------------------
# acp list
# ---------------------------------------------------------------------------


@main.command("list")
@click.argument("kind", type=click.Choice(sorted(KIND_PATHS)), default="solutions")
@click.option("--ai-tool", type=click.Choice(AI_TOOLS), help="Only solutions for this tool")
def list_cmd(kind: str, ai_tool: Optional[str]):
    """List items you own or have liked."""
    _require_token()
    _run(_list_impl(kind, ai_tool))


async def _list_impl(kind: str, ai_tool: Optional[str]):
    params = {"aiTool": ai_tool} if ai_tool and kind == "solutions" else None
    async with _client() as c:
        items = await _get(c, KIND_PATHS[kind], params)

    if not items:
        click.echo(f"No {kind} yet. Like some on the web or create your own.")
        return

    rows = [
        {**item, "source": "mine" if item.get("isOwner") else "liked"}
        for item in items
    ]
    columns = [("ID", "id", 36), ("Name", "name", 32)]
    if kind == "solutions":
        columns.append(("Tool", "aiTool", 12))
    columns += [("Likes", "likes", 6), ("Downloads", "downloads", 9), ("Source", "source", 6)]

    click.secho(f"{kind.capitalize()} ({len(rows)}):", bold=True)
    click.echo()
    _print_table(rows, columns)


# ---------------------------------------------------------------------------
# acp apply
# ---------------------------------------------------------------------------


def _pick_solution(solutions: list[dict]) -> Optional[str]:
    """Page through solutions PAGE_SIZE at a time. Returns an id, or None to quit."""
    pages = max(1, math.ceil(len(solutions) / PAGE_SIZE))
    page = 0
    while True:
        chunk = solutions[page * PAGE_SIZE:(page + 1) * PAGE_SIZE]
        click.secho(f"Solutions (page {page + 1}/{pages}):", bold=True)
        for i, s in enumerate(chunk, start=1):
            click.echo(f"  {i:3d}. {s.get('name', '')[:50]:50s}  {s.get('aiTool', '')}")

        hint = "Number to select"
        if page < pages - 1:
            hint += ", n for next"
        if page > 0:
            hint += ", p for previous"
        hint += ", q to quit"
        choice = click.prompt(hint).strip().lower()

        if choice == "q":
            return None
        if choice == "n" and page < pages - 1:
            page += 1
        elif choice == "p" and page > 0:
            page -= 1
        elif choice.isdigit() and 1 <= int(choice) <= len(chunk):
            return chunk[int(choice) - 1]["id"]
        else:
            click.secho("Invalid choice.", fg="red")


@main.command()
@click.argument("solution_id", required=False)
@click.option("--ide", type=click.Choice(sorted(IDE_LAYOUTS)), help="Target IDE / agent tool")
@click.option("--search", "-s", help="Only offer solutions whose name or description matches")
@click.option(
    "--dir", "target_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Project directory to write into (default: current directory)",
)
@click.option("--yes", "-y", is_flag=True, help="Overwrite existing files without asking")
def apply(
    solution_id: Optional[str],
    ide: Optional[str],
    search: Optional[str],
    target_dir: Path,
    yes: bool,
):
    """Write a solution's agent, prompts, MCP servers and skills into a project."""
    _require_token()
    _run(_apply_impl(solution_id, ide, search, target_dir, yes))


async def _apply_impl(
    solution_id: Optional[str],
    ide: Optional[str],
    search: Optional[str],
    target_dir: Path,
    yes: bool,
):
    async with _client() as c:
        if not solution_id:
            solutions = await _get(c, KIND_PATHS["solutions"])
            if search:
                needle = search.lower()
                solutions = [
                    s for s in solutions
                    if needle in (s.get("name") or "").lower()
                    or needle in (s.get("description") or "").lower()
                ]
            if not solutions:
                click.echo("No matching solutions. Like one on the web or create your own.")
                return
            solution_id = _pick_solution(solutions)
            if solution_id is None:
                click.echo("Cancelled.")
                return

        if ide is None:
            ide = click.prompt(
                "Target IDE",
                type=click.Choice(sorted(IDE_LAYOUTS)),
                default="claude-code",
            )

        detail = await _get(c, f"{KIND_PATHS['solutions']}/{solution_id}")

    files, warnings = plan_files(detail, IDE_LAYOUTS[ide], target_dir)
    for warning in warnings:
        click.secho(f"  warning: {warning}", fg="yellow", err=True)
    if not files:
        click.echo("Nothing to write.")
        return

    click.secho(f"Applying '{detail.get('name')}' for {ide}:", bold=True)
    confirm = None if yes else (
        lambda path: click.confirm(f"{path} exists. Overwrite?", default=False)
    )
    written, kept = write_files(files, confirm)

    for path in written:
        click.echo(f"  {click.style('wrote', fg='green')}  {path}")
    for path in kept:
        click.echo(f"  {click.style('kept', fg='yellow')}   {path}")
    click.echo()
    click.echo(f"{len(written)} file(s) written, {len(kept)} kept.")
