"""Pydantic schemas for holdings."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, Field, model_validator

from integrations.extraction import parse_price
from integrations.quote_protocol import REPORTING_CURRENCY, InstrumentType, Market
from models.utils import generate_uuid


class Holding(BaseModel):
    """A position in one security, as persisted in the holdings list.

    ``last_value`` is always in the reporting currency (JPY).
    """

    id: str = Field(default_factory=generate_uuid)
    code: str
    instrument_type: InstrumentType = InstrumentType.EQUITY
    market: Market = Market.DOMESTIC
    shares: Decimal
    currency: str = REPORTING_CURRENCY
    name: Optional[str] = None
    last_price: Optional[Decimal] = None
    last_value: Optional[Decimal] = None
    last_updated_at: Optional[datetime] = None
    user_pinned_market: bool = False
    synthetic: bool = False
    price_source: Optional[str] = None
    change_text: Optional[str] = None


def _strip_code(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise ValueError("code must not be empty")
    return v


SecurityCode = Annotated[str, BeforeValidator(_strip_code)]

# Legacy exports hold toLocaleString() text written in Japan time
_LEGACY_TZ = timezone(timedelta(hours=9))
_LEGACY_TIMESTAMP_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y, %I:%M:%S %p",
)


def _parse_legacy_timestamp(raw: Any) -> Optional[datetime]:
    """Parse a legacy ``lastUpdated`` value, or None if it is not a timestamp."""
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str):
        parsed = None
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError:
            for fmt in _LEGACY_TIMESTAMP_FORMATS:
                try:
                    parsed = datetime.strptime(raw.strip(), fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_LEGACY_TZ)
    return parsed


class HoldingCreate(BaseModel):
    """Request body for adding a holding.

    If a holding with the same code already exists its shares are replaced
    instead of creating a duplicate.
    """

    code: SecurityCode
    shares: Decimal = Field(gt=0)
    instrument_type: InstrumentType = InstrumentType.EQUITY
    market: Optional[Market] = None
    user_pinned_market: bool = False
    name: Optional[str] = None


class HoldingUpdate(BaseModel):
    """Request body for editing a holding. Omitted fields are unchanged.

    Setting ``market`` pins it.
    """

    shares: Optional[Decimal] = Field(default=None, gt=0)
    instrument_type: Optional[InstrumentType] = None
    market: Optional[Market] = None
    name: Optional[str] = None


class HoldingImportRecord(BaseModel):
    """One record of an imported holdings file.

    Accepts both the current field names and the legacy ones
    (``type``: stock/fund, ``country``: JP/US, ``value``, ``lastUpdated``).
    """

    code: SecurityCode
    shares: Decimal = Field(gt=0)
    instrument_type: InstrumentType = InstrumentType.EQUITY
    market: Optional[Market] = None
    user_pinned_market: bool = False
    name: Optional[str] = None
    last_price: Optional[Decimal] = None
    last_value: Optional[Decimal] = None
    last_updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def map_legacy_fields(cls, data: Any) -> Any:
        """Translate legacy record fields to current names."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        legacy_type = data.pop("type", None)
        if "instrument_type" not in data and legacy_type is not None:
            data["instrument_type"] = (
                InstrumentType.FUND if str(legacy_type).lower() == "fund" else InstrumentType.EQUITY
            )
        legacy_country = data.pop("country", None)
        if "market" not in data and legacy_country is not None:
            data["market"] = (
                Market.FOREIGN if str(legacy_country).upper() == "US" else Market.DOMESTIC
            )
        # Legacy values are display strings ("3,000", "$150.00", "未取得");
        # an unreadable one is dropped rather than failing the record.
        if "last_value" not in data and "value" in data:
            data["last_value"] = parse_price(data.pop("value"))
        if "last_updated_at" not in data and "lastUpdated" in data:
            data["last_updated_at"] = _parse_legacy_timestamp(data.pop("lastUpdated"))
        if "last_price" not in data and "price" in data:
            data["last_price"] = parse_price(data.pop("price"))
        return data


class TransferChunk(BaseModel):
    """One piece of a chunked export payload (1-based ``chunk``)."""

    data: str
    chunk: int = Field(ge=1)
    total: int = Field(ge=1)


class ImportRequest(BaseModel):
    """Request body for an import: either plain records or transfer chunks."""

    records: Optional[list[dict[str, Any]]] = None
    chunks: Optional[list[TransferChunk]] = None

    @model_validator(mode="after")
    def require_one_payload(self) -> "ImportRequest":
        if (self.records is None) == (self.chunks is None):
            raise ValueError("Provide exactly one of records or chunks")
        return self


class ImportSkip(BaseModel):
    """Why one import record was skipped."""

    index: int
    code: Optional[str] = None
    error: str


class ImportResult(BaseModel):
    added: list[str] = []
    updated: list[str] = []
    skipped: list[ImportSkip] = []

