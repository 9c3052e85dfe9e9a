import logging

from fastapi import APIRouter, Depends, HTTPException

from db.database import get_db, transaction
from utils.auth import require_child

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def list_collectibles(child_id: str = Depends(require_child), conn = Depends(get_db)):
    """The shop, with each item flagged if this child already owns it."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT c.id, c.name, c.ascii_art, c.price, c.rarity,
               cc.acquired_at IS NOT NULL AS owned
        FROM collectibles c
        LEFT JOIN child_collectibles cc ON cc.collectible_id = c.id AND cc.child_id = ?
        ORDER BY c.price, c.name
        """,
        (child_id,),
    )
    items = []
    for row in cursor.fetchall():
        item = dict(row)
        item["owned"] = bool(item["owned"])
        items.append(item)
    return items


@router.post("/{collectible_id}/buy")
async def buy_collectible(collectible_id: str, child_id: str = Depends(require_child), conn = Depends(get_db)):
    with transaction(conn):
        cursor = conn.cursor()
        cursor.execute("SELECT id, name, price FROM collectibles WHERE id = ?", (collectible_id,))
        item = cursor.fetchone()
        if not item:
            raise HTTPException(status_code=404, detail="Collectible not found")
        cursor.execute(
            "SELECT 1 FROM child_collectibles WHERE child_id = ? AND collectible_id = ?",
            (child_id, collectible_id),
        )
        if cursor.fetchone():
            raise HTTPException(status_code=400, detail="You already own this collectible")
        cursor.execute("SELECT balance FROM child_coins WHERE child_id = ?", (child_id,))
        wallet = cursor.fetchone()
        balance = wallet["balance"] if wallet else 0
        if balance < item["price"]:
            raise HTTPException(status_code=400, detail="Not enough coins")
        cursor.execute(
            "UPDATE child_coins SET balance = balance - ? WHERE child_id = ?",
            (item["price"], child_id),
        )
        cursor.execute(
            "INSERT INTO child_collectibles (child_id, collectible_id) VALUES (?, ?)",
            (child_id, collectible_id),
        )
    logger.info("Child %s bought collectible %s", child_id, collectible_id)
    return {"collectible_id": collectible_id, "name": item["name"], "new_balance": balance - item["price"]}
