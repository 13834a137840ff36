"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Cada herramienta tiene su renderer: texto, imagen, árbol de ficheros,
  tabla o tarjeta de reporte.
"""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from core.domain.models import (
    CodeFile,
    CrawlResult,
    CrawlEntry,
    DynamicRules,
    HistoryEntry,
    LedgerEntry,
    OsintEntry,
    PaymentResult,
    ScanResult,
    ScribeEntry,
    SentinelEntry,
    StoredPaymentMethod,
    TextFormat,
    TransactionAnalysis,
    VisionEntry,
    WeaveEntry,
)
from core.domain.tools import TOOL_ORDER, Tool


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("ABYSSAL DECK", style="bold magenta")
    subtitle = Text("Scribe • Vision • Weaver • Sentinel • Crawler • Harbinger • Ledger", style="dim cyan")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_tool_menu(active: Tool) -> Table:
    table = Table(title="Protocols", show_header=False, box=None)
    table.add_column("Key", style="magenta", no_wrap=True)
    table.add_column("Tool")
    for idx, tool in enumerate(TOOL_ORDER, start=1):
        style = "bold cyan" if tool is active else "dim"
        marker = "▶ " if tool is active else "  "
        table.add_row(f"ctrl+{idx}", Text(marker + tool.label(), style=style))
    return table


def build_error_panel(message: str, *, title: str = "Anomaly") -> Panel:
    return Panel(Text(message, style="red"), title=Text(title, style="bold red"), border_style="red")


def build_validation_panel(errors: dict[str, str]) -> Panel:
    body = Text()
    for field_name, message in errors.items():
        body.append(f"{field_name}: ", style="bold")
        body.append(f"{message}\n")
    return Panel(body, title=Text("Input Error", style="bold red"), border_style="red")


# --- Shadow Scribe -----------------------------------------------------------


def build_text_panel(text: str, fmt: TextFormat) -> Panel:
    body: RenderableType = Markdown(text) if fmt == "markdown" else Text(text)
    return Panel(body, title=Text("Shadow Scribe", style="bold magenta"), border_style="cyan")


# --- Abyssal Vision ----------------------------------------------------------


def build_vision_panel(*, prompt: str, data_uri: str, saved_to: str | None) -> Panel:
    mime = data_uri.split(";", 1)[0].removeprefix("data:")
    body = Text()
    body.append("Vision forged.\n", style="bold green")
    body.append(f"Prompt: {prompt}\n")
    body.append(f"Type: {mime} · {len(data_uri)} chars\n", style="dim")
    if saved_to:
        body.append(f"Saved to: {saved_to}", style="magenta")
    return Panel(body, title=Text("Abyssal Vision", style="bold magenta"), border_style="green")


# --- Code Weaver -------------------------------------------------------------


def build_files_table(files: Sequence[CodeFile]) -> Table:
    table = Table(title=f"Files ({len(files)})")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Language", style="magenta")
    table.add_column("Size", justify="right")
    for idx, f in enumerate(files):
        table.add_row(str(idx), f.name, f.language, str(len(f.content)))
    return table


def build_code_view(file: CodeFile) -> Panel:
    lexer = file.language if file.language and file.language != "text" else "text"
    return Panel(
        Syntax(file.content, lexer, line_numbers=True, word_wrap=True),
        title=Text(file.name, style="bold cyan"),
        border_style="cyan",
    )


# --- Specter Sentinel --------------------------------------------------------


def build_analysis_panel(analysis: TransactionAnalysis) -> Panel:
    threat = analysis.final_decision
    color = "red" if threat else "green"
    heading = "THREAT DETECTED" if threat else "NOMINAL ACTIVITY"

    body = Text()
    body.append(f"> {analysis.summary}\n\n", style="italic cyan")
    proba_style = "bold red" if analysis.ml_fraud_proba > 0.7 else "bold green"
    body.append("ML Fraud Probability: ", style="magenta")
    body.append(f"{analysis.ml_fraud_proba * 100:.2f}%\n", style=proba_style)
    body.append("Anomaly Detected: ", style="magenta")
    body.append("YES\n" if analysis.is_anomaly else "NO\n", style="yellow" if analysis.is_anomaly else "green")
    body.append("Threat Intel Rules Triggered:\n", style="magenta")
    if analysis.rule_based_fraud and analysis.triggered_rules:
        for rule in analysis.triggered_rules:
            body.append(f"  - {rule}\n", style="yellow")
    else:
        body.append("  None\n", style="dim")

    return Panel(body, title=Text(f"Analysis Complete: {heading}", style=f"bold {color}"), border_style=color)


def build_rules_table(rules: DynamicRules) -> Table:
    table = Table(title="Threat Intelligence Matrix")
    table.add_column("Kind", style="magenta", no_wrap=True)
    table.add_column("Value", style="cyan")
    table.add_column("Id", style="dim")
    for ip in rules.bad_ips:
        table.add_row("ip", ip, "")
    for keyword in rules.keywords:
        table.add_row("keyword", keyword, "")
    for pattern in rules.patterns:
        table.add_row(
            "pattern",
            f"{pattern.transaction_type} ≥ {pattern.min_amount:g} · '{pattern.description_keywords}'",
            pattern.id,
        )
    return table


# --- Shadow Crawler ----------------------------------------------------------


def _status_style(code: int) -> str:
    if 200 <= code < 300:
        return "bold green"
    if 300 <= code < 400:
        return "bold yellow"
    if code >= 400 or code < 0:
        return "bold red"
    return "bold white"


def build_crawl_panel(result: CrawlResult) -> Panel:
    title = Text.assemble((result.original_url, "bold magenta"), "  ", (str(result.status_code), _status_style(result.status_code)))
    if result.error_message:
        return Panel(Text(f"> Error: {result.error_message}", style="red"), title=title, border_style="red")

    body = Text()
    if result.proxy_location:
        body.append("Egress Point:   ", style="bold")
        body.append(f"{result.proxy_location}\n")
    body.append("Final URL:      ", style="bold")
    body.append(f"{result.final_url}\n")
    if result.page_title:
        body.append("Title:          ", style="bold")
        body.append(f"{result.page_title}\n")
    body.append("Content Length: ", style="bold")
    body.append(f"{result.content_length} bytes\n\n")
    body.append("Content Preview:\n", style="magenta")
    body.append(result.content_preview or "No content preview available.", style="dim")
    return Panel(body, title=title, border_style="cyan")


# --- OSINT Harbinger ---------------------------------------------------------


def build_osint_panel(result: ScanResult) -> Panel:
    title = Text.assemble(("Report for: ", "bold magenta"), (result.target, "bold cyan"))
    if result.error or result.report is None:
        return Panel(
            Text(f"Scan Anomaly Detected:\n{result.error}", style="red"),
            title=title,
            border_style="red",
        )

    report = result.report
    intel = Text()
    intel.append("Search Intel\n", style="bold magenta")
    if report.google_search.search_url:
        intel.append(f"URL: {report.google_search.search_url}\n")
    intel.append(f"Summary: {report.google_search.summary}\n\n")

    intel.append("Domain Intel\n", style="bold magenta")
    whois = report.domain_info.whois_data
    if report.domain_info.status.startswith("skipped"):
        intel.append(f"{report.domain_info.status}\n", style="dim")
    else:
        intel.append(f"Status: {report.domain_info.status}\n")
        intel.append(f"Organization: {(whois.organization if whois else None) or 'N/A'}\n")
        intel.append(f"Created: {(whois.creation_date if whois else None) or 'N/A'}\n")
        intel.append(f"Expires: {(whois.expiration_date if whois else None) or 'N/A'}\n")
        servers = ", ".join(whois.name_servers or []) if whois else ""
        intel.append(f"Name Servers: {servers or 'N/A'}\n")

    social = Table(title="Social Media Presence", show_header=False)
    social.add_column("Platform", style="cyan")
    social.add_column("Result")
    for platform, profile in report.social_media_presence.profiles.items():
        if profile.found:
            social.add_row(platform, Text(profile.url or "Profile Found", style="green"))
        else:
            social.add_row(platform, Text("Not Found", style="dim"))

    return Panel(Group(intel, social), title=title, border_style="cyan")


# --- Abyssal Ledger ----------------------------------------------------------


def build_methods_table(methods: Sequence[StoredPaymentMethod], selected_id: str | None = None) -> Table:
    table = Table(title="Active Payment Profiles")
    table.add_column("", no_wrap=True)
    table.add_column("Id", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Account")
    table.add_column("Name")
    for m in methods:
        marker = "●" if m.id == selected_id else "○"
        name = Text(m.name)
        if m.is_default:
            name.append(" PRIMARY", style="bold magenta")
        table.add_row(marker, m.id, m.account_type.replace("_", " "), m.account_number, name)
    return table


def build_payment_panel(result: PaymentResult) -> Panel:
    ok = result.status == "success"
    color = "green" if ok else "red"
    body = Text()
    body.append(f"> {result.message}\n", style="italic cyan")
    if result.details:
        body.append("Details: ", style="bold magenta")
        body.append(f"{result.details}\n", style=color)
    if result.payment:
        body.append("Payment ID: ", style="bold magenta")
        body.append(f"{result.payment.id}\n", style="green")
        body.append("Amount: ", style="bold magenta")
        body.append(f"${result.payment.amount:.2f}\n", style="green")
        body.append("Customer ID: ", style="bold magenta")
        body.append(f"{result.payment.customer_id}\n", style="green")
        if result.payment.created_at:
            body.append("Timestamp: ", style="bold magenta")
            body.append(f"{result.payment.created_at}\n", style="green")
    heading = "Transaction Committed" if ok else "Transaction Failed"
    return Panel(body, title=Text(heading, style=f"bold {color}"), border_style=color)


# --- History -----------------------------------------------------------------


def _entry_summary(entry: HistoryEntry) -> str:
    if isinstance(entry, ScribeEntry):
        return f"[{entry.format}] {entry.prompt}"
    if isinstance(entry, VisionEntry):
        return entry.prompt
    if isinstance(entry, WeaveEntry):
        return f"[{entry.style}] {entry.prompt} ({len(entry.files)} files)"
    if isinstance(entry, SentinelEntry):
        verdict = "error" if entry.analysis is None else ("THREAT" if entry.analysis.final_decision else "nominal")
        return f"{entry.transaction.transaction_type} {entry.transaction.amount:g} → {verdict}"
    if isinstance(entry, CrawlEntry):
        return ", ".join(entry.urls)
    if isinstance(entry, OsintEntry):
        return ", ".join(entry.targets)
    if isinstance(entry, LedgerEntry):
        return f"{entry.status.upper()} ${entry.amount:.2f} {entry.customer_id} {entry.hash}"
    return ""


def build_history_table(tool: Tool, entries: Sequence[HistoryEntry]) -> Table:
    table = Table(title=f"{tool.label()} · Archives ({len(entries)})")
    table.add_column("Id", style="dim", no_wrap=True)
    table.add_column("Timestamp", style="magenta", no_wrap=True)
    table.add_column("Entry", style="cyan")
    for entry in entries:
        table.add_row(entry.id, entry.timestamp.isoformat(timespec="seconds"), _entry_summary(entry))
    return table
