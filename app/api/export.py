"""Export API endpoints."""

import csv
import io
from datetime import date
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.services.export import EXPORT_COLUMNS, export_rows

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("")
async def export_logs(
    format: str = Query("csv", pattern="^(csv|json)$"),
    start: date | None = None,
    end: date | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Export the user's habit logs.

    Args:
        format: Output format (csv or json)
        start: Start date (YYYY-MM-DD), inclusive
        end: End date (YYYY-MM-DD), inclusive
    """
    rows = await export_rows(db, user.id, start, end)

    if format == "json":
        return {
            "data": rows,
            "date_range": {
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
            "count": len(rows),
        }

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(EXPORT_COLUMNS), extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)

    suffix = f"_{start or 'all'}_{end or 'all'}"
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=bloomhabit_export{suffix}.csv"}
    )


@router.get("/metadata")
async def get_metadata():
    """Column definitions for the export."""
    return {
        "columns": EXPORT_COLUMNS,
        "formats": ["csv", "json"],
        "note": "Rows are habit logs ordered by date, then habit id",
    }
