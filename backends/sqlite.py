import asyncio
import datetime
import json
import os
import sqlite3
from typing import Any, Dict, List, Mapping

import pytz

from core.errors import BackendError
from core.logger import get_logger
from core.models import Item

logger = get_logger(__name__)

DB_PATH = os.getenv("CATALOG_DB_PATH", "/data/catalog.sqlite3")


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


class SqliteCatalogBackend:
    """
    Local catalog kept in SQLite. Imported items land in imported_items;
    a batch is written in one transaction.
    """

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        parent = os.path.dirname(self.db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def ensure_db(self) -> None:
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS items (
                    item_id TEXT PRIMARY KEY,
                    name TEXT,
                    price REAL,
                    image_url TEXT,
                    position INTEGER
                )
            """
            )
            # decription is the legacy misspelled column some feeds still fill
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS item_details (
                    item_id TEXT PRIMARY KEY,
                    description TEXT,
                    decription TEXT
                )
            """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS imported_items (
                    item_id TEXT PRIMARY KEY,
                    name TEXT,
                    price REAL,
                    image_url TEXT,
                    imported_at TEXT
                )
            """
            )
            con.commit()

    def seed(self, records: List[Mapping[str, Any]]) -> int:
        """Insert or refresh catalog records, including any detail fields."""
        self.ensure_db()
        count = 0
        with self._connect() as con:
            cur = con.cursor()
            for pos, rec in enumerate(records):
                it = Item.from_payload(rec)
                if not it.item_id:
                    logger.warning("Skipping catalog record without id: %s", rec)
                    continue
                cur.execute(
                    """
                    INSERT INTO items (item_id, name, price, image_url, position)
                    VALUES (?,?,?,?,?)
                    ON CONFLICT(item_id) DO UPDATE SET
                        name=excluded.name,
                        price=excluded.price,
                        image_url=excluded.image_url,
                        position=excluded.position
                """,
                    (it.item_id, it.name, it.price, it.image_url, pos),
                )
                count += 1
                if "description" in rec or "decription" in rec:
                    cur.execute(
                        """
                        INSERT INTO item_details (item_id, description, decription)
                        VALUES (?,?,?)
                        ON CONFLICT(item_id) DO UPDATE SET
                            description=excluded.description,
                            decription=excluded.decription
                    """,
                        (it.item_id, rec.get("description"), rec.get("decription")),
                    )
            con.commit()
        logger.info("Seeded %d catalog records into %s.", count, self.db_path)
        return count

    def seed_file(self, path: str) -> int:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            raise BackendError(f"Seed file {path} must hold a list of items")
        return self.seed([rec for rec in data if isinstance(rec, dict)])

    def _list_items(self) -> List[Item]:
        self.ensure_db()
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                "SELECT item_id, name, price, image_url FROM items ORDER BY position, item_id"
            )
            rows = cur.fetchall()
        return [
            Item(item_id=item_id, name=name or "", price=price or 0.0, image_url=image_url or "")
            for item_id, name, price, image_url in rows
        ]

    def _fetch_detail(self, item_id: str) -> Dict[str, Any]:
        self.ensure_db()
        with self._connect() as con:
            cur = con.cursor()
            cur.execute("SELECT 1 FROM items WHERE item_id=?", (item_id,))
            if cur.fetchone() is None:
                raise BackendError(f"Unknown item {item_id}")
            cur.execute(
                "SELECT description, decription FROM item_details WHERE item_id=?",
                (item_id,),
            )
            row = cur.fetchone()

        out: Dict[str, Any] = {"id": item_id}
        if row:
            description, decription = row
            if description is not None:
                out["description"] = description
            if decription is not None:
                out["decription"] = decription
        return out

    def _submit_import(self, items: List[Item]) -> None:
        self.ensure_db()
        ts = now_utc_iso()
        con = self._connect()
        try:
            with con:
                for it in items:
                    con.execute(
                        """
                        INSERT INTO imported_items (item_id, name, price, image_url, imported_at)
                        VALUES (?,?,?,?,?)
                        ON CONFLICT(item_id) DO UPDATE SET
                            name=excluded.name,
                            price=excluded.price,
                            image_url=excluded.image_url,
                            imported_at=excluded.imported_at
                    """,
                        (it.item_id, it.name, it.price, it.image_url, ts),
                    )
        except sqlite3.Error as e:
            raise BackendError(f"Import failed: {e}") from e
        finally:
            con.close()
        logger.info("Imported %d item(s) into %s.", len(items), self.db_path)

    def imported_ids(self) -> List[str]:
        self.ensure_db()
        with self._connect() as con:
            cur = con.cursor()
            cur.execute("SELECT item_id FROM imported_items ORDER BY item_id")
            return [row[0] for row in cur.fetchall()]

    async def list_items(self) -> List[Item]:
        return await asyncio.to_thread(self._list_items)

    async def fetch_detail(self, item_id: str) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._fetch_detail, item_id)

    async def submit_import(self, items: List[Item]) -> None:
        await asyncio.to_thread(self._submit_import, list(items))
