import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..domain.errors import ReasonCode, StorageError
from ..domain.repositories import TableCatalog
from ..models import RestaurantTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableListing:
    """Reservable tables, or the reason they could not be read.

    An empty ``tables`` list with no ``error`` means the catalog has no bookable tables.
    """

    tables: List[RestaurantTable] = field(default_factory=list)
    error: Optional[ReasonCode] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def list_reservable_tables(catalog: TableCatalog) -> TableListing:
    try:
        tables = await catalog.list_reservable()
    except StorageError as exc:
        return TableListing(error=ReasonCode.DATABASE_ERROR, detail=exc.message)
    except Exception as exc:
        logger.exception("unexpected failure listing reservable tables")
        return TableListing(error=ReasonCode.UNKNOWN_ERROR, detail=str(exc))
    return TableListing(tables=list(tables))
