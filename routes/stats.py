from fastapi import APIRouter, Depends, Query

from db.database import get_db
from utils.auth import require_child
from utils.stats import combined_stats, combined_stats_by_date

router = APIRouter()


@router.get("/me")
async def my_stats(
    period: str = Query("all", pattern="^(7d|30d|all)$"),
    child_id: str = Depends(require_child),
    conn = Depends(get_db),
):
    """Totals and daily history for the signed-in child."""
    return {
        "period": period,
        "totals": combined_stats(conn, child_id, period).to_dict(),
        "by_date": combined_stats_by_date(conn, child_id, period).to_dict(),
    }
