from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class Product:
    id: str
    store_id: str
    slug: str
    title: str
    price: int
    stock: int
    is_active: bool = True
    description: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Product":
        return cls(
            id=str(row["id"]),
            store_id=str(row.get("store_id") or ""),
            slug=row.get("slug") or "",
            title=row.get("title") or "Article",
            price=int(row.get("price") or 0),
            stock=int(row.get("stock") or 0),
            is_active=bool(row.get("is_active", True)),
            description=row.get("description") or "",
        )
