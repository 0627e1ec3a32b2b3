"""Command line entry point for paperdesk.

Wires the session store, the HTTP client and the API services together and
exposes them as Typer commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer

from common import messages
from common.http_client import HttpClient
from common.logging_setup import setup_logging
from common.settings import log_level_from_env
from ingest.runner import fetch_unembedded_ids, load_ids, run_batch_upload, run_embed
from ingest.sheet import read_rows
from services import AuthService, PdfService, SearchService, UserService, is_allowed
from state.session_store import SessionStore


logger = logging.getLogger(__name__)

app = typer.Typer(help="Admin tools for the research-paper backend.", no_args_is_help=True)

DEFAULT_SHEET = Path("src/data/ingestion.xlsx")
DEFAULT_PAPERS_DIR = Path("src/data/papers")
DEFAULT_IDS_FILE = Path("src/data/unembedded-ids.json")


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    setup_logging("DEBUG" if verbose else log_level_from_env())


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=str))


def _run(work: Callable[[HttpClient, SessionStore], Awaitable[int]]) -> None:
    """Run `work` with a configured client and store, mapping failures to exit codes."""

    async def _main() -> int:
        store = SessionStore.from_env()
        async with HttpClient.from_env(token_provider=store.token) as http:
            return await work(http, store)

    try:
        code = asyncio.run(_main())
    except (RuntimeError, ValueError) as exc:
        logger.debug("Command failed", exc_info=True)
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if code:
        raise typer.Exit(code=code)


# --------------- Session ---------------
@app.command()
def login(
    email: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Sign in and persist the session."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        result = await AuthService(http, store).login(email, password)
        if not result.success:
            typer.secho(result.error or messages.LOGIN_FAILED, fg=typer.colors.RED, err=True)
            return 1
        if not is_allowed(result.data):
            typer.secho(messages.NOT_ALLOWED, fg=typer.colors.YELLOW, err=True)
            return 2
        typer.echo(f"{messages.LOGIN_SUCCESS} Logged in as {result.data.get('email')}")
        return 0

    _run(work)


@app.command()
def register(
    email: str = typer.Option(..., prompt=True),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
) -> None:
    """Create an account (an administrator still has to allow it)."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        result = await AuthService(http, store).register(email, password)
        if not result.success:
            typer.secho(result.error or messages.REGISTRATION_FAILED, fg=typer.colors.RED, err=True)
            return 1
        typer.echo(messages.REGISTRATION_SUCCESS)
        return 0

    _run(work)


@app.command()
def logout() -> None:
    """Sign out and remove the stored session."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        await AuthService(http, store).logout()
        typer.echo(messages.LOGOUT_SUCCESS)
        return 0

    _run(work)


@app.command()
def whoami() -> None:
    """Validate the stored session and print the current user."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        user = await AuthService(http, store).restore_session()
        if user is None:
            typer.echo("Not logged in.")
            return 1
        _echo_json(user)
        return 0

    _run(work)


# --------------- Users ---------------
@app.command()
def users(stats: bool = typer.Option(False, "--stats", help="Print aggregate statistics instead.")) -> None:
    """List user accounts."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        svc = UserService(http)
        _echo_json(await svc.stats() if stats else await svc.list_users())
        return 0

    _run(work)


@app.command("set-access")
def set_access(
    user_id: str,
    allow: bool = typer.Option(True, "--allow/--deny"),
) -> None:
    """Allow or deny console access for a user."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        _echo_json(await UserService(http).set_access(user_id, allow))
        return 0

    _run(work)


@app.command("set-role")
def set_role(user_id: str, role: str) -> None:
    """Change a user's role."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        _echo_json(await UserService(http).change_role(user_id, role))
        return 0

    _run(work)


@app.command("delete-user")
def delete_user(user_id: str, yes: bool = typer.Option(False, "--yes", "-y")) -> None:
    """Delete a user account."""
    if not yes:
        typer.confirm(f"Delete user {user_id}?", abort=True)

    async def work(http: HttpClient, store: SessionStore) -> int:
        await UserService(http).delete_user(user_id)
        typer.echo(f"Deleted user {user_id}")
        return 0

    _run(work)


# --------------- PDFs ---------------
@app.command()
def pdfs() -> None:
    """List PDF records."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        _echo_json(await PdfService(http).list_pdfs())
        return 0

    _run(work)


@app.command()
def upload(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    doi: str = typer.Option(..., "--doi"),
    pmid: Optional[str] = typer.Option(None, "--pmid"),
    tags: Optional[str] = typer.Option(None, "--tags", help="Tags as JSON text."),
) -> None:
    """Upload a single PDF."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        result = await PdfService(http).upload_pdf(path, doi, pmid=pmid, tags=tags)
        _echo_json(result)
        return 0

    _run(work)


@app.command("delete-pdf")
def delete_pdf(pdf_id: str, yes: bool = typer.Option(False, "--yes", "-y")) -> None:
    """Delete a PDF record."""
    if not yes:
        typer.confirm(f"Delete PDF {pdf_id}?", abort=True)

    async def work(http: HttpClient, store: SessionStore) -> int:
        await PdfService(http).delete_pdf(pdf_id)
        typer.echo(f"Deleted PDF {pdf_id}")
        return 0

    _run(work)


@app.command()
def search(question: str, threshold: float = typer.Option(0.5, "--threshold")) -> None:
    """Ask a question against the embedded papers."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        _echo_json(await SearchService(http).search(question, threshold))
        return 0

    _run(work)


# --------------- Batch jobs ---------------
@app.command()
def ingest(
    batch: int = typer.Option(1, "--batch", "--rows", min=1, help="1-based batch number."),
    sheet: int = typer.Option(0, "--sheet", min=0, help="Worksheet index."),
    workbook: Path = typer.Option(DEFAULT_SHEET, "--file"),
    papers_dir: Path = typer.Option(DEFAULT_PAPERS_DIR, "--papers-dir"),
    batch_size: int = typer.Option(10, "--batch-size", min=1),
    keep_files: bool = typer.Option(False, "--keep-files", help="Do not delete uploaded files."),
) -> None:
    """Upload one batch of PDFs listed in the ingestion spreadsheet."""
    if not workbook.exists():
        typer.secho(f"File not found: {workbook.resolve()}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    try:
        rows = read_rows(workbook, sheet_index=sheet)
    except ValueError as exc:
        typer.secho(f"Error reading XLSX: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if not rows:
        typer.echo("Sheet is empty.")
        return

    async def work(http: HttpClient, store: SessionStore) -> int:
        summary = await run_batch_upload(
            PdfService(http),
            rows,
            papers_dir,
            batch=batch,
            batch_size=batch_size,
            delete_after=not keep_files,
        )
        _echo_json(summary)
        return 0

    _run(work)


@app.command()
def unembedded(output: Path = typer.Option(DEFAULT_IDS_FILE, "--output", "-o")) -> None:
    """Save the ids of PDFs that still need embedding."""

    async def work(http: HttpClient, store: SessionStore) -> int:
        ids = await fetch_unembedded_ids(PdfService(http), output)
        typer.echo(f"Total unembedded PDFs: {len(ids)}")
        return 0

    _run(work)


@app.command()
def embed(ids_file: Path = typer.Option(DEFAULT_IDS_FILE, "--ids")) -> None:
    """Embed every PDF id listed in a JSON file."""
    if not ids_file.exists():
        typer.secho(f"File not found: {ids_file.resolve()}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    try:
        ids = load_ids(ids_file)
    except ValueError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if not ids:
        typer.echo("No IDs found in the file.")
        return

    async def work(http: HttpClient, store: SessionStore) -> int:
        summary = await run_embed(PdfService(http), ids)
        _echo_json(summary)
        return 0 if not summary["failed"] else 1

    _run(work)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
