"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.report_exporter import export_osint_pdf
from adapters.storage import build_storage
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.models import ScanResult

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

_ENV_BASE_URL = "ABYSSAL_DECK_AI_BASE_URL"
_ENV_MODEL = "ABYSSAL_DECK_AI_MODEL"
_ENV_SEARCH_MODEL = "ABYSSAL_DECK_AI_SEARCH_MODEL"
_ENV_IMAGE_MODEL = "ABYSSAL_DECK_AI_IMAGE_MODEL"
_ENV_API_KEY = "ABYSSAL_DECK_AI_API_KEY"

_PRESETS: dict[str, dict[str, str]] = {
    "openai": {
        _ENV_BASE_URL: "https://api.openai.com/v1",
        _ENV_MODEL: "gpt-4o-mini",
        _ENV_SEARCH_MODEL: "gpt-4o-mini-search-preview",
        _ENV_IMAGE_MODEL: "dall-e-3",
    },
    # Búsqueda web y modelos de imagen dependen del proveedor:
    "openrouter": {
        _ENV_BASE_URL: "https://openrouter.ai/api/v1",
        _ENV_MODEL: "openai/gpt-4o-mini",
        _ENV_SEARCH_MODEL: "openai/gpt-4o-mini-search-preview",
        _ENV_IMAGE_MODEL: "openai/dall-e-3",
    },
    "ollama": {
        _ENV_BASE_URL: "http://localhost:11434/v1",
        _ENV_MODEL: "llama3",
        _ENV_SEARCH_MODEL: "llama3",
        _ENV_IMAGE_MODEL: "llama3",
    },
}


async def _check_http(url: str) -> tuple[bool, str]:
    try:
        async with build_async_client() as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


def _check_pdf() -> tuple[bool, str]:
    """Attempt to render a one-target report to detect WeasyPrint issues."""

    try:
        with tempfile.TemporaryDirectory(prefix="abyssal-doctor-") as tmp:
            sample = [ScanResult(target="doctor", error="diagnostic run")]
            export_osint_pdf(results=sample, output_path=Path(tmp) / "doctor.pdf")
        return True, "OK"
    except Exception as exc:
        return False, str(exc)


def _check_storage(settings: AppSettings) -> tuple[bool, str]:
    try:
        storage = build_storage(settings)
        storage.set("doctor_probe", "{}")
        storage.delete("doctor_probe")
        return True, str(storage.root)
    except OSError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Abyssal Deck Doctor")
    table.add_column("Check", style="bright_magenta", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if bool(settings.ai_api_key):
        table.add_row("AI key", "OK", "Remote AI enabled")
    else:
        table.add_row("AI key", "MISSING", "Every tool needs the model backend (run `doctor setup-ai`)")
    table.add_row("AI base_url", "OK", settings.ai_base_url)
    table.add_row("AI model", "OK", settings.ai_model)
    table.add_row("AI search model", "OK", settings.ai_search_model)
    table.add_row("AI image model", "OK", settings.ai_image_model)

    ok_storage, detail_storage = _check_storage(settings)
    table.add_row("Archives", "OK" if ok_storage else "FAIL", detail_storage)

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http("https://example.com"))
    table.add_row("Direct uplink", "OK" if ok_http else "FAIL", detail_http)

    ok_pdf, detail_pdf = _check_pdf()
    table.add_row("WeasyPrint PDF", "OK" if ok_pdf else "FAIL", detail_pdf)

    _console.print(table)

    if not ok_pdf:
        _console.print(
            "\n[yellow]Note:[/yellow] When PDF export fails, `osint --export-pdf` automatically falls back to HTML."
        )
    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] Without direct uplink the crawler relies on the neural search fallback."
        )


@app.command(name="setup-ai")
def setup_ai() -> None:
    """Interactive AI setup (stores config in the user config .env)."""

    provider = typer.prompt("AI provider", default="openai", show_default=True).strip().lower()

    values = _PRESETS.get(provider, {}).copy()
    if not values:
        _console.print("[yellow]Unknown provider preset. You can still enter custom values.[/yellow]")

    base_url = typer.prompt("AI base URL", default=values.get(_ENV_BASE_URL, ""), show_default=True).strip()
    model = typer.prompt("AI model", default=values.get(_ENV_MODEL, ""), show_default=True).strip()
    search_model = typer.prompt(
        "AI search model",
        default=values.get(_ENV_SEARCH_MODEL, model),
        show_default=True,
    ).strip()
    image_model = typer.prompt(
        "AI image model",
        default=values.get(_ENV_IMAGE_MODEL, "dall-e-3"),
        show_default=True,
    ).strip()
    api_key = typer.prompt("AI API key", hide_input=True, confirmation_prompt=False).strip()

    if not base_url or not model:
        raise typer.BadParameter("base_url and model are required")

    env_path = write_user_env_vars(
        {
            _ENV_BASE_URL: base_url,
            _ENV_MODEL: model,
            _ENV_SEARCH_MODEL: search_model or model,
            _ENV_IMAGE_MODEL: image_model,
            _ENV_API_KEY: api_key,
        },
        env_path=get_user_env_file(),
    )

    _console.print(f"[green]Saved AI config to:[/green] {env_path}")
