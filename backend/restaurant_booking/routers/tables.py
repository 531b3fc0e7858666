from fastapi import APIRouter, Depends, HTTPException, status

from ..deps import get_locale, get_table_catalog
from ..domain.errors import ReasonCode
from ..domain.repositories import TableCatalog
from ..schemas import TableList, TableRead
from ..usecases import tables as table_usecase
from ..utils.i18n import translate

router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("", response_model=TableList)
async def list_reservable_tables(
    catalog: TableCatalog = Depends(get_table_catalog),
    locale: str = Depends(get_locale),
) -> TableList:
    listing = await table_usecase.list_reservable_tables(catalog)
    if not listing.ok:
        error = listing.error or ReasonCode.UNKNOWN_ERROR
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "code": error.value,
                "message": listing.detail or translate(error, locale),
            },
        )
    return TableList(tables=[TableRead.from_db(table=table, locale=locale) for table in listing.tables])
