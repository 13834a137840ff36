"""CLI principal (Typer).

Por qué Typer + Rich:
- Typer da subcomandos y ayuda tipada sin boilerplate.
- Rich pinta paneles/tablas por herramienta (ver `cli.ui_components`).

Los comandos solo parsean argumentos y delegan en `cli.flows`; el shell
interactivo reutiliza exactamente los mismos flujos.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import typer

from cli import doctor
from cli.context import DeckContext, configure_logging, get_context
from cli.flows import (
    crawl_flow,
    ledger_methods_flow,
    ledger_record_flow,
    osint_flow,
    scribe_flow,
    sentinel_flow,
    vision_flow,
    weave_flow,
)
from cli.ui_components import (
    build_error_panel,
    build_history_table,
    build_rules_table,
    build_tool_menu,
    build_validation_panel,
    print_banner,
)
from core.domain.errors import ValidationFailed
from core.domain.models import PaymentResult
from core.domain.tools import Tool
from core.services.forms import (
    CrawlerForm,
    LedgerForm,
    OsintForm,
    ScribeForm,
    SentinelForm,
    VisionForm,
    WeaverForm,
)
from core.services.shell import ToolShell, parse_shortcut

T = TypeVar("T")

app = typer.Typer(
    no_args_is_help=True,
    help="Abyssal Deck: seven generative tools behind one terminal.",
)
rules_app = typer.Typer(no_args_is_help=True, help="Specter Sentinel threat intelligence rules.")
ledger_app = typer.Typer(no_args_is_help=True, help="Abyssal Ledger payment operations.")
history_app = typer.Typer(no_args_is_help=True, help="Per-tool archives.")

app.add_typer(rules_app, name="rules")
app.add_typer(ledger_app, name="ledger")
app.add_typer(history_app, name="history")
app.add_typer(doctor.app, name="doctor")

_TEXT_FORMATS = ("plain", "markdown")


def _execute(ctx: DeckContext, coro: Coroutine[Any, Any, T]) -> T:
    """Run one flow on a fresh event loop; validation errors exit with code 1."""

    try:
        return asyncio.run(coro)
    except ValidationFailed as exc:
        ctx.console.print(build_validation_panel(exc.errors))
        raise typer.Exit(code=1) from None


def _parse_tool(value: str) -> Tool:
    try:
        return Tool.from_slug(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
) -> None:
    configure_logging("DEBUG" if verbose else get_context().settings.log_level)


# ---------------------------------------------------------------------------
# Generación
# ---------------------------------------------------------------------------


@app.command()
def scribe(
    prompt: Optional[str] = typer.Argument(None, help="Directive. Omit to resume the saved draft."),
    text_format: Optional[str] = typer.Option(None, "--format", "-f", help="plain | markdown"),
) -> None:
    """Shadow Scribe: web-grounded text generation."""

    ctx = get_context()
    draft = ctx.drafts.load()
    if text_format is not None and text_format not in _TEXT_FORMATS:
        raise typer.BadParameter(f"format must be one of {', '.join(_TEXT_FORMATS)}")

    form = ScribeForm(
        prompt=prompt if prompt is not None else draft.prompt,
        format=text_format or (draft.format if prompt is None else "plain"),  # type: ignore[arg-type]
    )
    ctx.console.print(f"[dim]{form.word_count} words · {form.format}[/dim]")
    _execute(ctx, scribe_flow(ctx, form))


@app.command()
def vision(
    prompt: str = typer.Argument(..., help="Visual directive (max 1000 chars)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the decoded image here."),
) -> None:
    """Abyssal Vision: prompt-to-image."""

    ctx = get_context()
    result = _execute(ctx, vision_flow(ctx, VisionForm(prompt=prompt), output=output))
    if result is not None and not result.ok:
        raise typer.Exit(code=1)


@app.command()
def weave(
    prompt: str = typer.Argument(..., help="Blueprint for the construct."),
    minified: bool = typer.Option(False, "--minified", help="Ask for minified output."),
    export_dir: Optional[Path] = typer.Option(None, "--export-dir", help="Write every file here."),
    preview: bool = typer.Option(False, "--preview", help="Assemble a self-contained HTML preview."),
) -> None:
    """Code Weaver: multi-file code generation with preview."""

    ctx = get_context()
    form = WeaverForm(prompt=prompt, style="minified" if minified else "standard")
    _execute(ctx, weave_flow(ctx, form, export_dir=export_dir, preview=preview))


# ---------------------------------------------------------------------------
# Specter Sentinel
# ---------------------------------------------------------------------------


@app.command()
def sentinel(
    amount: str = typer.Option("6000", "--amount"),
    transaction_type: str = typer.Option("international_wire", "--type"),
    location: str = typer.Option("RU", "--location"),
    ip_address: str = typer.Option("192.168.1.100", "--ip"),
    description: str = typer.Option("payment for services card_skimming_v2", "--description"),
) -> None:
    """Specter Sentinel: transaction risk scoring against the stored rules."""

    ctx = get_context()
    form = SentinelForm(
        amount=amount,
        transaction_type=transaction_type,
        location=location,
        ip_address=ip_address,
        description=description,
    )
    result = _execute(ctx, sentinel_flow(ctx, form))
    if result is not None and not result.ok:
        raise typer.Exit(code=1)


@rules_app.command("show")
def rules_show() -> None:
    """Print the threat intelligence matrix."""

    ctx = get_context()
    ctx.console.print(build_rules_table(ctx.rules.rules))


def _report_rule_change(ctx: DeckContext, changed: bool, what: str) -> None:
    if changed:
        ctx.console.print(f"[green]{what}[/green]")
    else:
        ctx.console.print(f"[yellow]No change:[/yellow] {what}")


@rules_app.command("add-ip")
def rules_add_ip(ip: str = typer.Argument(...)) -> None:
    ctx = get_context()
    _report_rule_change(ctx, ctx.rules.add_ip(ip), f"bad ip {ip.strip()}")


@rules_app.command("remove-ip")
def rules_remove_ip(ip: str = typer.Argument(...)) -> None:
    ctx = get_context()
    _report_rule_change(ctx, ctx.rules.remove_ip(ip), f"removed ip {ip.strip()}")


@rules_app.command("add-keyword")
def rules_add_keyword(keyword: str = typer.Argument(...)) -> None:
    ctx = get_context()
    _report_rule_change(ctx, ctx.rules.add_keyword(keyword), f"keyword {keyword.strip()}")


@rules_app.command("remove-keyword")
def rules_remove_keyword(keyword: str = typer.Argument(...)) -> None:
    ctx = get_context()
    _report_rule_change(ctx, ctx.rules.remove_keyword(keyword), f"removed keyword {keyword.strip()}")


@rules_app.command("add-pattern")
def rules_add_pattern(
    transaction_type: str = typer.Option(..., "--type"),
    min_amount: str = typer.Option(..., "--min-amount"),
    keywords: str = typer.Option(..., "--keywords"),
) -> None:
    """Add a pattern rule (type, minimum amount, description keywords)."""

    ctx = get_context()
    pattern = ctx.rules.add_pattern(
        transaction_type=transaction_type,
        min_amount=min_amount,
        description_keywords=keywords,
    )
    if pattern is None:
        ctx.console.print(build_error_panel("Pattern requires a type, a numeric minimum amount and keywords."))
        raise typer.Exit(code=1)
    ctx.console.print(f"[green]pattern {pattern.id}[/green]")


@rules_app.command("remove-pattern")
def rules_remove_pattern(pattern_id: str = typer.Argument(...)) -> None:
    ctx = get_context()
    _report_rule_change(ctx, ctx.rules.remove_pattern(pattern_id), f"removed pattern {pattern_id}")


# ---------------------------------------------------------------------------
# Recon
# ---------------------------------------------------------------------------


@app.command()
def crawl(
    urls: list[str] = typer.Argument(..., help="Targets (spaces or commas)."),
    country: str = typer.Option("", "--country"),
    city: str = typer.Option("", "--city"),
) -> None:
    """Shadow Crawler: direct uplink with neural search fallback."""

    ctx = get_context()
    form = CrawlerForm(urls=" ".join(urls), country=country, city=city)
    _execute(ctx, crawl_flow(ctx, form))


@app.command()
def osint(
    targets: list[str] = typer.Argument(..., help="Names, handles or domains (spaces or commas)."),
    export_json: Optional[Path] = typer.Option(None, "--export-json", help="Directory for the JSON export."),
    export_html: Optional[Path] = typer.Option(None, "--export-html", help="HTML report path."),
    export_pdf: Optional[Path] = typer.Option(None, "--export-pdf", help="PDF report path (HTML fallback)."),
) -> None:
    """OSINT Harbinger: per-target intelligence reports."""

    ctx = get_context()
    form = OsintForm(targets_input=" ".join(targets))
    _execute(
        ctx,
        osint_flow(ctx, form, export_json=export_json, export_html=export_html, export_pdf=export_pdf),
    )


# ---------------------------------------------------------------------------
# Abyssal Ledger
# ---------------------------------------------------------------------------


@ledger_app.command("methods")
def ledger_methods(customer_id: str = typer.Argument(...)) -> None:
    """List the stored payment methods for a customer."""

    ctx = get_context()
    methods = _execute(ctx, ledger_methods_flow(ctx, LedgerForm(customer_id=customer_id)))
    if not methods:
        raise typer.Exit(code=1)


async def _record(ctx: DeckContext, form: LedgerForm, method_id: str | None) -> PaymentResult | None:
    form.ensure_valid()
    if method_id is None:
        methods = await ledger_methods_flow(ctx, form)
        if not methods:
            return None
    else:
        form.selected_method_id = method_id
    return await ledger_record_flow(ctx, form)


@ledger_app.command("record")
def ledger_record(
    customer_id: str = typer.Option("cust_phantom_001", "--customer-id"),
    amount: str = typer.Option("199.99", "--amount"),
    method_id: Optional[str] = typer.Option(None, "--method", help="Defaults to the customer's primary method."),
    invoice_id: str = typer.Option("", "--invoice"),
    note: str = typer.Option("", "--note"),
) -> None:
    """Submit a payment to the ledger."""

    ctx = get_context()
    form = LedgerForm(customer_id=customer_id, amount=amount, invoice_id=invoice_id, private_note=note)
    result = _execute(ctx, _record(ctx, form, method_id))
    if result is None or result.status != "success":
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Archivos
# ---------------------------------------------------------------------------


@history_app.command("list")
def history_list(tool: str = typer.Argument(..., help="scribe, vision, weaver, sentinel, crawler, osint, ledger")) -> None:
    ctx = get_context()
    selected = _parse_tool(tool)
    ctx.console.print(build_history_table(selected, ctx.history(selected).entries))


@history_app.command("delete")
def history_delete(tool: str = typer.Argument(...), entry_id: str = typer.Argument(...)) -> None:
    ctx = get_context()
    if not ctx.history(_parse_tool(tool)).delete(entry_id):
        ctx.console.print(build_error_panel(f"No archive entry {entry_id}"))
        raise typer.Exit(code=1)
    ctx.console.print(f"[green]Deleted {entry_id}[/green]")


@history_app.command("purge")
def history_purge(
    tool: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    ctx = get_context()
    selected = _parse_tool(tool)
    purged = ctx.history(selected).purge(
        confirm=lambda: yes or typer.confirm(f"Purge all {selected.label()} archives?", default=False)
    )
    ctx.console.print("[green]Archives purged.[/green]" if purged else "[yellow]Purge cancelled.[/yellow]")


# ---------------------------------------------------------------------------
# Shell interactivo
# ---------------------------------------------------------------------------


async def _submit_line(ctx: DeckContext, tool: Tool, line: str) -> None:
    if tool is Tool.SHADOW_SCRIBE:
        await scribe_flow(ctx, ScribeForm(prompt=line, format=ctx.drafts.load().format))
    elif tool is Tool.ABYSSAL_VISION:
        await vision_flow(ctx, VisionForm(prompt=line))
    elif tool is Tool.CODE_WEAVER:
        await weave_flow(ctx, WeaverForm(prompt=line), preview=True)
    elif tool is Tool.SPECTER_SENTINEL:
        await sentinel_flow(ctx, SentinelForm(description=line))
    elif tool is Tool.SHADOW_CRAWLER:
        await crawl_flow(ctx, CrawlerForm(urls=line))
    elif tool is Tool.OSINT_HARBINGER:
        await osint_flow(ctx, OsintForm(targets_input=line))
    elif tool is Tool.ABYSSAL_LEDGER:
        # `<customer_id>` lista métodos; `<customer_id> <amount> [nota]` registra el pago.
        customer_id, _, rest = line.partition(" ")
        amount, _, note = rest.strip().partition(" ")
        form = LedgerForm(customer_id=customer_id, amount=amount or "0", private_note=note.strip())
        if not amount:
            await ledger_methods_flow(ctx, form)
            return
        await _record(ctx, form, None)


@app.command()
def shell() -> None:
    """Interactive deck: ctrl+1..7 switches tools, `:h` shows archives, `:q` exits."""

    ctx = get_context()
    tool_shell = ToolShell()
    tool_shell.on_switch(lambda tool: ctx.console.print(build_tool_menu(tool)))

    print_banner(ctx.console)
    ctx.console.print(build_tool_menu(tool_shell.active))

    while True:
        try:
            line = ctx.console.input(f"[bold cyan]{tool_shell.active.slug}>[/bold cyan] ").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not line:
            continue
        if line in (":q", ":quit"):
            break
        if line == ":h":
            active = tool_shell.active
            ctx.console.print(build_history_table(active, ctx.history(active).entries))
            continue
        if parse_shortcut(line) is not None:
            if not tool_shell.handle_line(line):
                ctx.console.print("[yellow]Shortcuts go from 1 to 7.[/yellow]")
            continue
        try:
            asyncio.run(_submit_line(ctx, tool_shell.active, line))
        except ValidationFailed as exc:
            ctx.console.print(build_validation_panel(exc.errors))

    ctx.console.print("[dim]Link severed.[/dim]")
    if ctx.preview is not None:
        ctx.preview.revoke()


def run() -> None:
    app()


if __name__ == "__main__":
    run()
