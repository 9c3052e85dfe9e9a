import csv
import io
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from db.database import get_db
from routes.children import list_children
from utils.auth import require_parent
from utils.stats import SUBJECTS, combined_stats, combined_stats_by_date

router = APIRouter()


def _stats_rows(conn, parent_id: str, period: str) -> list[list[object]]:
    rows = []
    for child in list_children(conn, parent_id):
        stats = combined_stats(conn, child["id"], period)
        for subject in SUBJECTS:
            result = getattr(stats, subject)
            accuracy = round(result.correct / result.total * 100, 1) if result.total else 0
            rows.append([child["name"], subject, result.correct, result.incorrect, result.total, accuracy])
    return rows


def _by_date_rows(conn, parent_id: str, period: str) -> list[list[object]]:
    rows = []
    for child in list_children(conn, parent_id):
        by_date = combined_stats_by_date(conn, child["id"], period)
        for subject in SUBJECTS:
            for bucket in getattr(by_date, subject):
                rows.append([bucket.date, child["name"], subject, bucket.correct, bucket.incorrect])
    rows.sort(key=lambda row: (row[1], row[2]))
    rows.sort(key=lambda row: row[0], reverse=True)
    return rows


@router.get("/stats/export")
async def stats_export(
    period: str = Query("all", pattern="^(7d|30d|all)$"),
    by_date: bool = False,
    parent_id: str = Depends(require_parent),
    conn = Depends(get_db),
):
    output = io.StringIO()
    writer = csv.writer(output)
    if by_date:
        writer.writerow(["Date", "Child", "Subject", "Correct", "Incorrect"])
        writer.writerows(_by_date_rows(conn, parent_id, period))
    else:
        writer.writerow(["Child", "Subject", "Correct", "Incorrect", "Total", "Accuracy %"])
        writer.writerows(_stats_rows(conn, parent_id, period))
    data = output.getvalue().encode("utf-8")
    suffix = "-by-date" if by_date else ""
    filename = f"homeschool-stats{suffix}-{period}-{date.today().isoformat()}.csv"
    return StreamingResponse(
        io.BytesIO(data),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
