"""Per-tool flows shared by the one-shot commands and the interactive shell.

Each flow validates its form (raising `ValidationFailed` before any remote
call), dispatches through the tool's `RequestGuard`, records history, and
renders the outcome. A flow returns None when the guard rejected the
submission because a request was already in flight.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import httpx

from adapters.json_exporter import export_code_file, export_image, export_osint_reports
from adapters.report_exporter import export_osint_html, export_osint_pdf
from cli.context import DeckContext
from cli.ui_components import (
    build_analysis_panel,
    build_code_view,
    build_crawl_panel,
    build_error_panel,
    build_files_table,
    build_methods_table,
    build_osint_panel,
    build_payment_panel,
    build_text_panel,
    build_vision_panel,
)
from core.domain.errors import ValidationFailed
from core.domain.models import (
    CodeFile,
    CrawlEntry,
    CrawlResult,
    LedgerEntry,
    OsintEntry,
    PaymentResult,
    ScanResult,
    ScribeEntry,
    SentinelEntry,
    StoredPaymentMethod,
    TransactionAnalysis,
    VisionEntry,
    WeaveEntry,
)
from core.domain.results import RemoteResult
from core.domain.tools import Tool
from core.services.dispatcher import (
    analyze_transaction,
    fetch_payment_methods,
    generate_code,
    generate_image,
    generate_text,
    record_payment,
)
from core.services.forms import (
    CrawlerForm,
    LedgerForm,
    OsintForm,
    ScribeForm,
    SentinelForm,
    VisionForm,
    WeaverForm,
)
from core.services.recon import crawl_urls, run_osint_scans

logger = logging.getLogger(__name__)

NO_METHODS_MESSAGE = "No valid payment profiles found in the void for this ID."


async def scribe_flow(ctx: DeckContext, form: ScribeForm) -> RemoteResult[str] | None:
    form.ensure_valid()
    ctx.drafts.save(form.prompt, form.format)

    result = await ctx.guards[Tool.SHADOW_SCRIBE].run(
        lambda: generate_text(gateway=ctx.gateway, prompt=form.prompt, format=form.format)
    )
    if result is None:
        return None

    response = result.value if result.ok else result.error
    ctx.history(Tool.SHADOW_SCRIBE).append(
        ScribeEntry(prompt=form.prompt, response=response or "", format=form.format)
    )
    if result.ok:
        ctx.console.print(build_text_panel(response or "", form.format))
    else:
        ctx.console.print(build_error_panel(response or ""))
    return result


async def vision_flow(
    ctx: DeckContext,
    form: VisionForm,
    *,
    output: Path | None = None,
) -> RemoteResult[str] | None:
    form.ensure_valid()
    prompt = form.trimmed

    result = await ctx.guards[Tool.ABYSSAL_VISION].run(
        lambda: generate_image(gateway=ctx.gateway, prompt=prompt)
    )
    if result is None:
        return None
    if not result.ok or result.value is None:
        ctx.console.print(build_error_panel(result.error or ""))
        return result

    ctx.history(Tool.ABYSSAL_VISION).append(VisionEntry(prompt=prompt, image_url=result.value))

    saved_to = None
    if output is not None:
        try:
            saved_to = str(export_image(data_uri=result.value, output_path=output))
        except (OSError, ValueError) as exc:
            logger.warning("Image export to %s failed: %s", output, exc)
            ctx.console.print(build_error_panel(f"Image export failed: {exc}"))
    ctx.console.print(build_vision_panel(prompt=prompt, data_uri=result.value, saved_to=saved_to))
    return result


async def weave_flow(
    ctx: DeckContext,
    form: WeaverForm,
    *,
    export_dir: Path | None = None,
    preview: bool = False,
) -> list[CodeFile] | None:
    form.ensure_valid()

    files = await ctx.guards[Tool.CODE_WEAVER].run(
        lambda: generate_code(gateway=ctx.gateway, prompt=form.prompt, style=form.style)
    )
    if files is None:
        return None

    ctx.history(Tool.CODE_WEAVER).append(WeaveEntry(prompt=form.prompt, style=form.style, files=files))
    ctx.console.print(build_files_table(files))
    if files:
        ctx.console.print(build_code_view(files[0]))

    if export_dir is not None:
        for f in files:
            path = export_code_file(file=f, output_dir=export_dir)
            ctx.console.print(f"[green]Exported:[/green] {path}")

    if preview and ctx.preview is not None:
        handle = ctx.preview.build(files)
        ctx.console.print(f"[magenta]Preview:[/magenta] {handle.uri}")
    return files


async def sentinel_flow(ctx: DeckContext, form: SentinelForm) -> RemoteResult[TransactionAnalysis] | None:
    form.ensure_valid()
    transaction = form.to_transaction()
    rules = ctx.rules.rules

    result = await ctx.guards[Tool.SPECTER_SENTINEL].run(
        lambda: analyze_transaction(gateway=ctx.gateway, transaction=transaction, rules=rules)
    )
    if result is None:
        return None

    ctx.history(Tool.SPECTER_SENTINEL).append(
        SentinelEntry(transaction=transaction, analysis=result.value, error=result.error)
    )
    if result.ok and result.value is not None:
        ctx.console.print(build_analysis_panel(result.value))
    else:
        ctx.console.print(build_error_panel(result.error or ""))
    return result


async def crawl_flow(
    ctx: DeckContext,
    form: CrawlerForm,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[CrawlResult] | None:
    form.ensure_valid()
    targets = form.targets

    results = await ctx.guards[Tool.SHADOW_CRAWLER].run(
        lambda: crawl_urls(
            gateway=ctx.gateway,
            urls=targets,
            country=form.country,
            city=form.city,
            settings=ctx.settings,
            transport=transport,
        )
    )
    if results is None:
        return None

    ctx.history(Tool.SHADOW_CRAWLER).append(CrawlEntry(urls=targets, results=results))
    for r in results:
        ctx.console.print(build_crawl_panel(r))
    return results


def _export_osint(
    ctx: DeckContext,
    results: Sequence[ScanResult],
    *,
    export_json: Path | None,
    export_html: Path | None,
    export_pdf: Path | None,
) -> None:
    if export_json is not None:
        path = export_osint_reports(results=results, output_dir=export_json)
        if path is None:
            ctx.console.print("[yellow]No successful reports to export.[/yellow]")
        else:
            ctx.console.print(f"[green]JSON report:[/green] {path}")

    if export_html is not None:
        path = export_osint_html(results=results, output_path=export_html)
        ctx.console.print(f"[green]HTML report:[/green] {path}")

    if export_pdf is not None:
        try:
            path = export_osint_pdf(results=results, output_path=export_pdf)
            ctx.console.print(f"[green]PDF report:[/green] {path}")
        except Exception as exc:
            logger.warning("PDF export failed (%s); falling back to HTML", exc)
            path = export_osint_html(results=results, output_path=export_pdf.with_suffix(".html"))
            ctx.console.print(f"[yellow]PDF unavailable, HTML report:[/yellow] {path}")


async def osint_flow(
    ctx: DeckContext,
    form: OsintForm,
    *,
    export_json: Path | None = None,
    export_html: Path | None = None,
    export_pdf: Path | None = None,
) -> list[ScanResult] | None:
    form.ensure_valid()
    targets = form.targets

    results = await ctx.guards[Tool.OSINT_HARBINGER].run(
        lambda: run_osint_scans(gateway=ctx.gateway, targets=targets)
    )
    if results is None:
        return None

    ctx.history(Tool.OSINT_HARBINGER).append(OsintEntry(targets=targets, results=results))
    for r in results:
        ctx.console.print(build_osint_panel(r))

    _export_osint(ctx, results, export_json=export_json, export_html=export_html, export_pdf=export_pdf)
    return results


async def ledger_methods_flow(ctx: DeckContext, form: LedgerForm) -> list[StoredPaymentMethod] | None:
    if not form.customer_id.strip():
        raise ValidationFailed({"customer_id": "Customer ID cannot be empty."})

    methods = await ctx.guards[Tool.ABYSSAL_LEDGER].run(
        lambda: fetch_payment_methods(gateway=ctx.gateway, customer_id=form.customer_id)
    )
    if methods is None:
        return None

    form.load_methods(methods)
    if not methods:
        ctx.console.print(build_error_panel(NO_METHODS_MESSAGE))
    else:
        ctx.console.print(build_methods_table(methods, form.selected_method_id))
    return methods


async def ledger_record_flow(ctx: DeckContext, form: LedgerForm) -> PaymentResult | None:
    details = form.to_details()

    result = await ctx.guards[Tool.ABYSSAL_LEDGER].run(
        lambda: record_payment(gateway=ctx.gateway, details=details)
    )
    if result is None:
        return None

    ctx.history(Tool.ABYSSAL_LEDGER).append(
        LedgerEntry(
            amount=details.amount,
            customer_id=details.customer_id,
            status=result.status,
            note=details.private_note,
            hash=result.payment.id if result.payment else "FAILED_TX_HASH",
        )
    )
    ctx.console.print(build_payment_panel(result))
    return result
