"""Prompt dispatch for the generation, risk and ledger tools.

Every function here is a boundary: it builds the tool-specific prompt, makes
exactly one remote call through a `ModelGateway`, and normalizes the reply into
a typed payload or a uniform failure. Nothing raises past these functions; the
CLI only branches on success vs failure.

URL reconnaissance and OSINT live in `core.services.recon` (they add batching
and the direct-uplink fallback on top of the same pattern).
"""

from __future__ import annotations

import json
import logging

from pydantic import TypeAdapter

from core.domain.errors import GatewayError
from core.domain.models import (
    CodeFile,
    DynamicRules,
    PaymentDetails,
    PaymentResult,
    StoredPaymentMethod,
    TextFormat,
    TransactionAnalysis,
    TransactionInput,
    WeaveStyle,
)
from core.domain.results import RemoteResult
from core.interfaces.gateway import ModelGateway
from core.services.parsing import dedupe_sources, parse_json_payload

logger = logging.getLogger(__name__)

TEXT_EMPTY_REPLY = "The void returned silence."
TEXT_FAILURE = "Error: Unable to connect to the Abyssal Plane. The connection was severed."
IMAGE_EMPTY_REPLY = "Error: The Abyss forged an empty vision. No image data received."
IMAGE_REFUSAL_PREFIX = "Error: The model returned a text response instead of an image (likely safety refusal): "
ANALYSIS_EMPTY_REPLY = "Analysis produced no data."
ANALYSIS_FAILURE = "Analysis failed due to network entropy."

PAYMENT_AMOUNT_CEILING = 50000
PAYMENT_LIMIT_MESSAGE = "Transaction limit exceeded for this tier"
PAYMENT_FORBIDDEN_KEYWORDS: tuple[str, ...] = ("hack", "exploit", "stealth", "bypass")
PAYMENT_POLICY_MESSAGE = "Security policy violation detected"

_CODE_FILES = TypeAdapter(list[CodeFile])
_PAYMENT_METHODS = TypeAdapter(list[StoredPaymentMethod])


# ---------------------------------------------------------------------------
# Shadow Scribe
# ---------------------------------------------------------------------------


def _scribe_system_prompt(format: TextFormat) -> str:
    if format == "markdown":
        format_instruction = (
            "Format the response using Markdown syntax (headers, bold, lists, code blocks) where appropriate. "
            "Ensure it renders well in a terminal-style view."
        )
    else:
        format_instruction = (
            "STRICTLY return raw plain text only. Do NOT use any Markdown syntax. No headers (#), no bold (**), "
            "no italics (*), no list bullets (- or *), and no code fences (```). The output must be suitable for "
            "a raw system log or plain text editor. Use standard line breaks and indentation for structure if "
            "necessary, but keep it completely unadorned."
        )
    return (
        "You are Shadow Scribe, an advanced digital interface.\n"
        f"{format_instruction}\n"
        "You have access to web search. You MUST use it to retrieve accurate lyrics, real-time news, and factual "
        "data when requested.\n"
        "If the user asks for lyrics, search for them to ensure they are the correct, complete, and official lyrics."
    )


def format_sources(sources: list[str], format: TextFormat) -> str:
    if not sources:
        return ""
    if format == "markdown":
        return "\n\n---\n**Neural Link Sources:**\n" + "\n".join(f"- [{url}]({url})" for url in sources)
    return "\n\nNEURAL LINK SOURCES:\n" + "\n".join(f"- {url}" for url in sources)


async def generate_text(
    *,
    gateway: ModelGateway,
    prompt: str,
    format: TextFormat = "plain",
) -> RemoteResult[str]:
    try:
        completion = await gateway.complete(prompt, system=_scribe_system_prompt(format), search=True)
    except Exception as exc:
        logger.warning("generate_text failed: %s", exc)
        return RemoteResult.failure(TEXT_FAILURE)

    text = completion.text or TEXT_EMPTY_REPLY
    return RemoteResult.success(text + format_sources(dedupe_sources(completion.sources), format))


# ---------------------------------------------------------------------------
# Code Weaver
# ---------------------------------------------------------------------------


def _weaver_prompt(prompt: str, style: WeaveStyle) -> str:
    if style == "minified":
        style_instruction = "Code must be minified where possible (remove whitespace/comments). Optimize for size."
    else:
        style_instruction = (
            "Code must be well-formatted, indented, and documented with comments explaining complex logic."
        )
    return (
        f"Code Generation Request: {prompt}.\n"
        "Directive: Generate the necessary file(s) to completely fulfill this request. If it's a full app, "
        "generate multiple files (html, css, js, etc.).\n"
        "IMPORTANT: If the request implies a runnable web application, YOU MUST GENERATE an 'index.html' file "
        "that links the other files (css/js) so it can be previewed.\n"
        f"Style: {style_instruction}\n"
        "Return a JSON object containing a 'files' array. Each item has 'name' (file name with extension), "
        "'content' (the full content of the file) and 'language' (e.g. typescript, python, css)."
    )


def error_log_file(exc: BaseException | str) -> CodeFile:
    return CodeFile(
        name="error.log",
        content=f"// Error: Construct assembly failed.\n// {exc}",
        language="text",
    )


async def generate_code(
    *,
    gateway: ModelGateway,
    prompt: str,
    style: WeaveStyle = "standard",
) -> list[CodeFile]:
    """Generated files in model order; on failure a single synthetic `error.log`."""

    try:
        completion = await gateway.complete(_weaver_prompt(prompt, style), json_mode=True)
        payload = parse_json_payload(completion.text or '{"files": []}')
        if not isinstance(payload, dict):
            raise ValueError("Expected a JSON object with a 'files' array.")
        return _CODE_FILES.validate_python(payload.get("files") or [])
    except Exception as exc:
        logger.warning("generate_code failed: %s", exc)
        return [error_log_file(exc)]


# ---------------------------------------------------------------------------
# Abyssal Vision
# ---------------------------------------------------------------------------


async def generate_image(*, gateway: ModelGateway, prompt: str) -> RemoteResult[str]:
    """Data URI on success. A textual reply is a refusal, hence a failure."""

    try:
        reply = await gateway.generate_image(prompt)
    except Exception as exc:
        logger.warning("generate_image failed: %s", exc)
        return RemoteResult.failure(f"Error: {exc}")

    if reply.data_uri and reply.data_uri.startswith("data:image/"):
        return RemoteResult.success(reply.data_uri)
    if reply.text:
        return RemoteResult.failure(IMAGE_REFUSAL_PREFIX + reply.text)
    return RemoteResult.failure(IMAGE_EMPTY_REPLY)


# ---------------------------------------------------------------------------
# Specter Sentinel
# ---------------------------------------------------------------------------


def _sentinel_prompt(transaction: TransactionInput, rules: DynamicRules) -> str:
    return (
        f"Analyze this transaction for fraud: {json.dumps(transaction.model_dump(), ensure_ascii=False)}.\n"
        f"Consider these threat rules: {json.dumps(rules.model_dump(by_alias=True), ensure_ascii=False)}.\n"
        "Return a JSON object matching this schema exactly:\n"
        "{\n"
        '  "ml_fraud_proba": number between 0 and 1,\n'
        '  "is_anomaly": boolean,\n'
        '  "rule_based_fraud": boolean,\n'
        '  "triggered_rules": [string],\n'
        '  "final_decision": boolean (true = fraud),\n'
        '  "summary": string\n'
        "}"
    )


async def analyze_transaction(
    *,
    gateway: ModelGateway,
    transaction: TransactionInput,
    rules: DynamicRules,
) -> RemoteResult[TransactionAnalysis]:
    """Risk verdict; the rule set is forwarded as-is and trusted to shape it."""

    try:
        completion = await gateway.complete(_sentinel_prompt(transaction, rules), json_mode=True)
        if not completion.text:
            return RemoteResult.failure(ANALYSIS_EMPTY_REPLY)
        analysis = TransactionAnalysis.model_validate(parse_json_payload(completion.text))
    except Exception as exc:
        logger.warning("analyze_transaction failed: %s", exc)
        return RemoteResult.failure(ANALYSIS_FAILURE)
    return RemoteResult.success(analysis)


# ---------------------------------------------------------------------------
# Abyssal Ledger
# ---------------------------------------------------------------------------


def _methods_prompt(customer_id: str) -> str:
    return (
        f'Generate 3 realistic stored payment methods for customer ID: "{customer_id}".\n'
        "Vary the types (Credit Card, Personal Checking, Savings, Crypto Wallet).\n"
        "Generate realistic random numbers for account/routing (masked).\n\n"
        'Return a JSON object {"methods": [...]} where each item matches this schema exactly:\n'
        "{\n"
        '  "id": "string",\n'
        '  "name": "string (e.g. Chase Sapphire, Wells Fargo Checking)",\n'
        '  "accountNumber": "string (last 4 masked e.g. ****1234)",\n'
        '  "accountType": "string (CREDIT_CARD, PERSONAL_CHECKING, SAVINGS, CRYPTO_WALLET)",\n'
        '  "routingNumber": "string (masked or N/A)",\n'
        '  "default": boolean,\n'
        '  "created": "ISO date string",\n'
        '  "updated": "ISO date string",\n'
        '  "inputType": "string (KEYED, SWIPED, NETWORK)",\n'
        '  "phone": "string"\n'
        "}"
    )


async def fetch_payment_methods(*, gateway: ModelGateway, customer_id: str) -> list[StoredPaymentMethod]:
    """Synthetic stored methods for a customer; `[]` on any failure."""

    try:
        completion = await gateway.complete(_methods_prompt(customer_id), json_mode=True)
        payload = parse_json_payload(completion.text or "[]")
        if isinstance(payload, dict):
            # {"methods": [...]} o cualquier objeto con una única lista.
            lists = [v for v in payload.values() if isinstance(v, list)]
            payload = payload.get("methods", lists[0] if lists else [])
        return _PAYMENT_METHODS.validate_python(payload)
    except Exception as exc:
        logger.warning("fetch_payment_methods failed: %s", exc)
        return []


def _ledger_prompt(details: PaymentDetails) -> str:
    keywords = ", ".join(f'"{k}"' for k in PAYMENT_FORBIDDEN_KEYWORDS)
    return (
        "Process this financial transaction request acting as a strict, high-security financial ledger API.\n"
        f"Transaction Details: {details.model_dump_json(by_alias=True, exclude_none=True)}.\n\n"
        "Rules for Approval:\n"
        f'1. Decline if amount > {PAYMENT_AMOUNT_CEILING} with message "{PAYMENT_LIMIT_MESSAGE}".\n'
        f'2. Decline if privateNote contains keywords {keywords} with message "{PAYMENT_POLICY_MESSAGE}".\n'
        "3. Otherwise, AUTHORIZE the transaction.\n\n"
        "Return a JSON object matching this schema:\n"
        "{\n"
        '  "status": "success" | "error",\n'
        '  "message": "string (Short status message)",\n'
        '  "details": "string (Detailed reason or confirmation code)",\n'
        '  "payment": {\n'
        '     "id": "string (Generate a unique, complex transaction hash)",\n'
        '     "amount": number,\n'
        '     "customerId": "string",\n'
        '     "created_at": "ISO date string (now)"\n'
        "  } (Include this object ONLY if status is success)\n"
        "}"
    )


def network_failure_result() -> PaymentResult:
    return PaymentResult(
        status="error",
        message="Network Failure",
        details="The connection to the decentralized ledger was severed during transmission.",
    )


async def record_payment(*, gateway: ModelGateway, details: PaymentDetails) -> PaymentResult:
    """Ledger decision as evaluated by the backend; the client displays it verbatim."""

    try:
        completion = await gateway.complete(_ledger_prompt(details), json_mode=True)
        if not completion.text:
            raise GatewayError("Ledger failed to write.")
        return PaymentResult.model_validate(parse_json_payload(completion.text))
    except Exception as exc:
        logger.warning("record_payment failed: %s", exc)
        return network_failure_result()
