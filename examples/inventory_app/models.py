"""
Entities for the ledgerwork inventory example.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Product:
    sku: str
    name: str
    price_cents: int

    @property
    def identifier(self) -> tuple[str, str]:
        return ("product", self.sku)


@dataclass
class StockLevel:
    sku: str
    warehouse: str
    quantity: int = 0

    @property
    def identifier(self) -> tuple[str, str, str]:
        return ("stock", self.sku, self.warehouse)
