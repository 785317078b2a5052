"""
Debug API endpoints - inspect the backing spreadsheet's structure.
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from app.api.deps import get_entity_service
from app.core.logging import get_logger
from app.services.entities import TABLE_HEADERS, EntityService
from app.services.store.base import headers_match

logger = get_logger(__name__)
router = APIRouter()


@router.get("/sheets")
async def sheet_structure(
    service: EntityService = Depends(get_entity_service),
) -> Dict[str, Any]:
    """
    Report which tables exist and whether their header rows match.

    Read-only: nothing is created here, even if tables are missing.
    """
    store = service.store
    available = await store.list_sheet_names()

    tables: Dict[str, Dict[str, Any]] = {}
    missing: List[str] = []
    for table, expected in TABLE_HEADERS.items():
        headers: List[str] = []
        exists = table in available
        if exists:
            rows = await store.read_all(table)
            headers = [str(cell) for cell in rows[0]] if rows else []
        else:
            missing.append(table)
        tables[table] = {
            "exists": exists,
            "hasHeaders": bool(headers),
            "headers": headers,
            "expectedHeaders": expected,
            "headersMatch": headers_match(headers, expected),
        }

    ready = not missing and all(info["headersMatch"] for info in tables.values())
    logger.debug("Sheet structure inspected", available=available, missing=missing)
    return {
        "status": "ready" if ready else "needs_setup",
        "availableSheets": available,
        "missingSheets": missing,
        "tables": tables,
    }
