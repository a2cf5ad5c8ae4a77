"""Persistence of the holdings list as one JSON document."""

import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from schemas.holding import Holding
from services.store_service import StoreService

logger = logging.getLogger(__name__)

HOLDINGS_KEY = "portfolio.holdings"


class HoldingStore:
    """Loads and saves the ordered holdings list.

    ``load()`` always re-reads committed state; records that no longer
    parse are skipped with a warning rather than discarding the list.
    """

    def __init__(self, db: Session):
        self._db = db

    def load(self) -> list[Holding]:
        raw = StoreService.get(self._db, HOLDINGS_KEY, default=[])
        if not isinstance(raw, list):
            logger.error("Stored holdings are not a list (%s); ignoring", type(raw).__name__)
            return []

        holdings: list[Holding] = []
        for index, record in enumerate(raw):
            try:
                holdings.append(Holding.model_validate(record))
            except ValidationError:
                logger.warning("Skipping unreadable stored holding at index %d", index, exc_info=True)
        return holdings

    def save(self, holdings: list[Holding]) -> None:
        StoreService.set(
            self._db, HOLDINGS_KEY, [h.model_dump(mode="json") for h in holdings]
        )
        logger.debug("Saved %d holdings", len(holdings))
