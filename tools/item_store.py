"""Item store interface for garments and body profiles, with local backends."""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from models.garment import BodyProfile, Garment


class ItemStore:
    """Read access the pipeline needs, plus the writes used to seed a store."""

    def get_inventory(self, user_id: str) -> List[Garment]:
        raise NotImplementedError

    def get_profile(self, user_id: str) -> Optional[BodyProfile]:
        raise NotImplementedError

    def get_garments_by_ids(self, user_id: str, garment_ids: Iterable[str]) -> List[Garment]:
        """Return the requested garments that belong to ``user_id``."""

        raise NotImplementedError

    def save_garment(self, garment: Garment) -> Garment:
        raise NotImplementedError

    def save_profile(self, profile: BodyProfile) -> BodyProfile:
        raise NotImplementedError

    def delete_garment(self, user_id: str, garment_id: str) -> bool:
        raise NotImplementedError


class InMemoryItemStore(ItemStore):
    """Dictionary-backed store; records are immutable so reads share them."""

    def __init__(self, garments: Iterable[Garment] = (), profiles: Iterable[BodyProfile] = ()) -> None:
        self._garments: Dict[str, Garment] = {}
        self._profiles: Dict[str, BodyProfile] = {}
        for garment in garments:
            self.save_garment(garment)
        for profile in profiles:
            self.save_profile(profile)

    def get_inventory(self, user_id: str) -> List[Garment]:
        owned = [garment for garment in self._garments.values() if garment.user_id == user_id]
        return sorted(owned, key=lambda g: g.garment_id)

    def get_profile(self, user_id: str) -> Optional[BodyProfile]:
        return self._profiles.get(user_id)

    def get_garments_by_ids(self, user_id: str, garment_ids: Iterable[str]) -> List[Garment]:
        found = []
        for garment_id in dict.fromkeys(garment_ids):
            garment = self._garments.get(garment_id)
            if garment is not None and garment.user_id == user_id:
                found.append(garment)
        return found

    def save_garment(self, garment: Garment) -> Garment:
        self._garments[garment.garment_id] = garment
        return garment

    def save_profile(self, profile: BodyProfile) -> BodyProfile:
        self._profiles[profile.user_id] = profile
        return profile

    def delete_garment(self, user_id: str, garment_id: str) -> bool:
        garment = self._garments.get(garment_id)
        if garment is None or garment.user_id != user_id:
            return False
        del self._garments[garment_id]
        return True


class SQLiteItemStore(ItemStore):
    """Local SQLite-backed store for garments and body profiles."""

    def __init__(self, database_path: str | Path = "data/closet.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS garments (
                    garment_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    category TEXT NOT NULL,
                    name TEXT,
                    color TEXT,
                    front_image TEXT NOT NULL,
                    back_image TEXT,
                    tags TEXT
                );
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_garments_user ON garments (user_id);")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS body_profiles (
                    user_id TEXT PRIMARY KEY,
                    height_cm REAL NOT NULL,
                    weight_kg REAL NOT NULL,
                    front_photo TEXT,
                    side_photo TEXT,
                    back_photo TEXT
                );
                """
            )

    @staticmethod
    def _row_to_garment(row: sqlite3.Row) -> Garment:
        return Garment(
            garment_id=row["garment_id"],
            user_id=row["user_id"],
            category=row["category"],
            name=row["name"] or "",
            color=row["color"] or "",
            front_image=row["front_image"],
            back_image=row["back_image"],
            tags=json.loads(row["tags"]) if row["tags"] else [],
        )

    def get_inventory(self, user_id: str) -> List[Garment]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM garments WHERE user_id = ? ORDER BY garment_id",
                (user_id,),
            )
            return [self._row_to_garment(row) for row in cursor.fetchall()]

    def get_profile(self, user_id: str) -> Optional[BodyProfile]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM body_profiles WHERE user_id = ?", (user_id,)).fetchone()
        if not row:
            return None
        return BodyProfile(
            user_id=row["user_id"],
            height_cm=row["height_cm"],
            weight_kg=row["weight_kg"],
            front_photo=row["front_photo"],
            side_photo=row["side_photo"],
            back_photo=row["back_photo"],
        )

    def get_garments_by_ids(self, user_id: str, garment_ids: Iterable[str]) -> List[Garment]:
        wanted = list(dict.fromkeys(garment_ids))
        if not wanted:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT * FROM garments WHERE user_id = ? AND garment_id IN ({placeholders})",
                (user_id, *wanted),
            )
            by_id = {row["garment_id"]: self._row_to_garment(row) for row in cursor.fetchall()}
        return [by_id[garment_id] for garment_id in wanted if garment_id in by_id]

    def save_garment(self, garment: Garment) -> Garment:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO garments (
                    garment_id, user_id, category, name, color, front_image, back_image, tags
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    garment.garment_id,
                    garment.user_id,
                    garment.category,
                    garment.name,
                    garment.color,
                    garment.front_image,
                    garment.back_image,
                    json.dumps(garment.tags),
                ),
            )
        return garment

    def save_profile(self, profile: BodyProfile) -> BodyProfile:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO body_profiles (
                    user_id, height_cm, weight_kg, front_photo, side_photo, back_photo
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.user_id,
                    profile.height_cm,
                    profile.weight_kg,
                    profile.front_photo,
                    profile.side_photo,
                    profile.back_photo,
                ),
            )
        return profile

    def delete_garment(self, user_id: str, garment_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM garments WHERE user_id = ? AND garment_id = ?",
                (user_id, garment_id),
            )
            return cursor.rowcount > 0


__all__ = ["ItemStore", "InMemoryItemStore", "SQLiteItemStore"]
