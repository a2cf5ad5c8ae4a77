"""Service for user edits to the holdings list: add, edit, delete, import, export."""

import logging
from decimal import Decimal
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from schemas.holding import (
    Holding,
    HoldingCreate,
    HoldingImportRecord,
    HoldingUpdate,
    ImportResult,
    ImportSkip,
)
from services.classification_service import ClassificationService
from services.fx_rate_service import FxRateService
from services.holding_store import HoldingStore
from services.valuation_service import ValuationService

logger = logging.getLogger(__name__)


class HoldingNotFoundError(LookupError):
    """Raised when a holding id is not in the store."""

    def __init__(self, holding_id: str):
        self.holding_id = holding_id
        super().__init__(f"Holding {holding_id} not found")


def _find_by_code(holdings: list[Holding], code: str) -> Optional[Holding]:
    key = ClassificationService.code_key(code)
    for holding in holdings:
        if ClassificationService.code_key(holding.code) == key:
            return holding
    return None


def _revalue(holding: Holding, fx_rate: Decimal) -> None:
    value = ValuationService.revalue(holding, fx_rate)
    if value is not None:
        holding.last_value = value


class HoldingService:
    """CRUD on the persisted holdings list.

    Each operation loads the latest list, applies one change and saves it,
    so edits made while a refresh is running are visible to its
    reconciliation step.
    """

    @staticmethod
    def list_holdings(db: Session) -> list[Holding]:
        return HoldingStore(db).load()

    @staticmethod
    def get_holding(db: Session, holding_id: str) -> Holding:
        """Raises HoldingNotFoundError if the id is unknown."""
        for holding in HoldingStore(db).load():
            if holding.id == holding_id:
                return holding
        raise HoldingNotFoundError(holding_id)

    @staticmethod
    def add_holding(db: Session, data: HoldingCreate) -> tuple[Holding, bool]:
        """Add a holding, or replace the shares of an existing one with the same code.

        Returns:
            Tuple of (holding, created).
        """
        store = HoldingStore(db)
        holdings = store.load()
        fx_rate = FxRateService.current().rate

        existing = _find_by_code(holdings, data.code)
        if existing is not None:
            existing.shares = data.shares
            _revalue(existing, fx_rate)
            store.save(holdings)
            logger.info("Holding %s exists; shares set to %s", existing.code, data.shares)
            return existing, False

        market, pinned = ClassificationService.classify_new_holding(
            data.code, data.market, data.user_pinned_market
        )
        holding = Holding(
            code=data.code,
            instrument_type=data.instrument_type,
            market=market,
            shares=data.shares,
            currency=ClassificationService.currency_for(data.code, market, data.instrument_type),
            name=data.name,
            user_pinned_market=pinned,
        )
        holdings.append(holding)
        store.save(holdings)
        logger.info(
            "Holding added: %s (%s %s, id=%s)",
            holding.code, market.value, holding.instrument_type.value, holding.id,
        )
        return holding, True

    @staticmethod
    def update_holding(db: Session, holding_id: str, data: HoldingUpdate) -> Holding:
        """Apply a partial edit and revalue at the last known price.

        Raises:
            HoldingNotFoundError: If the id is unknown.
        """
        store = HoldingStore(db)
        holdings = store.load()
        holding = next((h for h in holdings if h.id == holding_id), None)
        if holding is None:
            raise HoldingNotFoundError(holding_id)

        if data.shares is not None:
            holding.shares = data.shares
        if data.instrument_type is not None:
            holding.instrument_type = data.instrument_type
        if data.market is not None:
            holding.market = data.market
            holding.user_pinned_market = True
        if data.name is not None:
            holding.name = data.name or None
        holding.currency = ClassificationService.currency_for(
            holding.code, holding.market, holding.instrument_type
        )

        _revalue(holding, FxRateService.current().rate)
        store.save(holdings)
        logger.info("Holding updated: %s (id=%s)", holding.code, holding.id)
        return holding

    @staticmethod
    def delete_holding(db: Session, holding_id: str) -> None:
        """Raises HoldingNotFoundError if the id is unknown."""
        store = HoldingStore(db)
        holdings = store.load()
        remaining = [h for h in holdings if h.id != holding_id]
        if len(remaining) == len(holdings):
            raise HoldingNotFoundError(holding_id)
        store.save(remaining)
        logger.info("Holding deleted: id=%s", holding_id)

    @staticmethod
    def import_records(db: Session, records: list[Any]) -> ImportResult:
        """Merge imported records into the list by code.

        Existing codes get their shares replaced; new codes are appended
        with their market classified as if added by hand. Invalid records
        are skipped and reported.
        """
        store = HoldingStore(db)
        holdings = store.load()
        fx_rate = FxRateService.current().rate
        result = ImportResult()

        for index, raw in enumerate(records):
            try:
                record = HoldingImportRecord.model_validate(raw)
            except ValidationError as e:
                code = raw.get("code") if isinstance(raw, dict) else None
                message = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
                    for err in e.errors()
                )
                result.skipped.append(ImportSkip(index=index, code=code, error=message))
                continue

            existing = _find_by_code(holdings, record.code)
            if existing is not None:
                existing.shares = record.shares
                _revalue(existing, fx_rate)
                result.updated.append(existing.code)
                continue

            market, pinned = ClassificationService.classify_new_holding(
                record.code, record.market, record.user_pinned_market
            )
            holding = Holding(
                code=record.code,
                instrument_type=record.instrument_type,
                market=market,
                shares=record.shares,
                currency=ClassificationService.currency_for(
                    record.code, market, record.instrument_type
                ),
                name=record.name,
                user_pinned_market=pinned,
                last_price=record.last_price,
                last_value=record.last_value,
                last_updated_at=record.last_updated_at,
            )
            if holding.last_price is not None:
                _revalue(holding, fx_rate)
            holdings.append(holding)
            result.added.append(holding.code)

        store.save(holdings)
        logger.info(
            "Import finished: %d added, %d updated, %d skipped",
            len(result.added), len(result.updated), len(result.skipped),
        )
        return result

    @staticmethod
    def export_records(db: Session) -> list[dict[str, Any]]:
        """Holdings as JSON-ready dicts, in list order."""
        return [h.model_dump(mode="json") for h in HoldingStore(db).load()]
