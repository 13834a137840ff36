"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Las respuestas del modelo IA son JSON "de confianza limitada": validar en el
  borde convierte cualquier desviación en un fallo de parseo, nunca en un crash.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
- Los modelos de pagos y reglas aceptan y emiten los alias camelCase del
  contrato original (`customerId`, `badIps`...).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

TextFormat = Literal["plain", "markdown"]
WeaveStyle = Literal["standard", "minified"]


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CodeFile(BaseModel):
    """Un fichero generado por Code Weaver."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Nombre con extensión (p.ej. 'style.css').")
    content: str = Field(default="", description="Contenido completo del fichero.")
    language: str = Field(default="text", description="Identificador de lenguaje (css, javascript...).")


class TransactionInput(BaseModel):
    """Transacción enviada a Specter Sentinel."""

    amount: float = Field(default=0.0, description="Importe (no numérico se envía como 0).")
    transaction_type: str = Field(default="online_purchase")
    location: str = Field(default="")
    ip_address: str = Field(default="")
    description: str = Field(default="")


class TransactionAnalysis(BaseModel):
    """Veredicto de riesgo devuelto por el backend (forma fija)."""

    model_config = ConfigDict(extra="ignore")

    ml_fraud_proba: float = Field(..., ge=0.0, le=1.0, description="Probabilidad de fraude (0..1).")
    is_anomaly: bool = Field(default=False)
    rule_based_fraud: bool = Field(default=False)
    triggered_rules: list[str] = Field(default_factory=list)
    final_decision: bool = Field(..., description="True = amenaza detectada.")
    summary: str = Field(default="")


class DynamicRulePattern(BaseModel):
    """Patrón importe/palabra clave definido por el usuario."""

    id: str = Field(default_factory=_new_id)
    transaction_type: str = Field(..., min_length=1)
    min_amount: float = Field(...)
    description_keywords: str = Field(..., min_length=1)


class DynamicRules(BaseModel):
    """Conjunto de reglas dinámicas, enviado tal cual como contexto del análisis."""

    model_config = ConfigDict(populate_by_name=True)

    bad_ips: list[str] = Field(default_factory=list, alias="badIps")
    keywords: list[str] = Field(default_factory=list)
    patterns: list[DynamicRulePattern] = Field(default_factory=list)


class CrawlResult(BaseModel):
    """Resultado de reconocimiento de una URL (éxito o registro de fallo en banda)."""

    model_config = ConfigDict(extra="ignore")

    original_url: str = Field(...)
    final_url: str = Field(default="")
    status_code: int = Field(default=0)
    content_length: int = Field(default=0, ge=0)
    content_preview: str = Field(default="")
    error_message: str | None = Field(default=None)
    proxy_location: str | None = Field(default=None)
    page_title: str | None = Field(default=None, description="<title> si hubo conexión directa.")

    @property
    def ok(self) -> bool:
        return self.error_message is None


class GoogleSearchIntel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    search_url: str | None = None
    summary: str = ""
    error: str | None = None


class WhoisData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    organization: str | None = None
    creation_date: str | None = None
    expiration_date: str | None = None
    name_servers: list[str] | None = None


class DomainInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str = "Unknown"
    whois_data: WhoisData | None = None
    error: str | None = None


class SocialProfileResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    found: bool = False


class SocialMediaPresence(BaseModel):
    model_config = ConfigDict(extra="ignore")

    profiles: dict[str, SocialProfileResult] = Field(default_factory=dict)


class OsintReport(BaseModel):
    """Reporte OSINT estructurado (búsqueda, registro de dominio, presencia social)."""

    model_config = ConfigDict(extra="ignore")

    target: str = Field(default="")
    google_search: GoogleSearchIntel = Field(default_factory=GoogleSearchIntel)
    domain_info: DomainInfo = Field(default_factory=DomainInfo)
    social_media_presence: SocialMediaPresence = Field(default_factory=SocialMediaPresence)


class ScanResult(BaseModel):
    """Resultado por objetivo en un lote OSINT: `report` o `error`, nunca ambos."""

    target: str
    report: OsintReport | None = None
    error: str | None = None


class StoredPaymentMethod(BaseModel):
    """Método de pago sintético (esquema válido, datos inventados por el backend)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(default="")
    account_number: str = Field(default="", alias="accountNumber")
    account_type: str = Field(default="", alias="accountType")
    routing_number: str = Field(default="N/A", alias="routingNumber")
    is_default: bool = Field(default=False, alias="default")
    created: str | None = None
    updated: str | None = None
    input_type: str | None = Field(default=None, alias="inputType")
    phone: str | None = None


class PaymentDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float = Field(..., gt=0)
    customer_id: str = Field(..., min_length=1, alias="customerId")
    payment_method_id: str = Field(..., min_length=1, alias="paymentMethodId")
    invoice_id: str | None = Field(default=None, alias="invoiceId")
    private_note: str | None = Field(default=None, alias="privateNote")


class PaymentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    amount: float
    customer_id: str = Field(default="", alias="customerId")
    created_at: str | None = None


class PaymentResult(BaseModel):
    """Decisión del ledger. El cliente confía en lo que devuelve el backend."""

    model_config = ConfigDict(extra="ignore")

    status: Literal["success", "error"]
    message: str = ""
    details: str | None = None
    payment: PaymentRecord | None = None


class ScribeDraft(BaseModel):
    """Único borrador persistido (Shadow Scribe)."""

    prompt: str = ""
    format: TextFormat = "plain"


# ---------------------------------------------------------------------------
# Historial: una forma por herramienta.
# ---------------------------------------------------------------------------


class HistoryEntry(BaseModel):
    """Base de toda entrada de historial (id + timestamp UTC)."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utcnow)


class ScribeEntry(HistoryEntry):
    prompt: str
    response: str
    format: TextFormat = "plain"


class VisionEntry(HistoryEntry):
    prompt: str
    image_url: str


class WeaveEntry(HistoryEntry):
    prompt: str
    style: WeaveStyle = "standard"
    files: list[CodeFile] = Field(default_factory=list)


class SentinelEntry(HistoryEntry):
    transaction: TransactionInput
    analysis: TransactionAnalysis | None = None
    error: str | None = None


class CrawlEntry(HistoryEntry):
    urls: list[str] = Field(default_factory=list)
    results: list[CrawlResult] = Field(default_factory=list)


class OsintEntry(HistoryEntry):
    targets: list[str] = Field(default_factory=list)
    results: list[ScanResult] = Field(default_factory=list)


class LedgerEntry(HistoryEntry):
    amount: float
    customer_id: str
    status: Literal["success", "error"]
    note: str | None = None
    hash: str = "FAILED_TX_HASH"
