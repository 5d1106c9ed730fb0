"""
Inventory example: a parent unit of work for the catalogue with a nested one
for stock movements, committed against the in-memory backend.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List

from ledgerwork import UnitOfWorkConfig
from ledgerwork.persistence import InMemoryStore, InMemoryUnitOfWork

from .models import Product, StockLevel


def bootstrap_store() -> InMemoryStore:
    store = InMemoryStore()
    with InMemoryUnitOfWork(store) as uow:
        uow.register_new(Product(sku="KB-01", name="Keyboard", price_cents=4900))
        uow.register_new(StockLevel(sku="KB-01", warehouse="north", quantity=10))
    return store


def restock(store: InMemoryStore, sku: str, warehouse: str, amount: int) -> StockLevel:
    current = store.get(("stock", sku, warehouse))
    uow = InMemoryUnitOfWork(store)
    if current is None:
        level = StockLevel(sku=sku, warehouse=warehouse, quantity=amount)
        uow.register_new(level)
    else:
        uow.register_clean(copy.copy(current))
        level = StockLevel(sku=sku, warehouse=warehouse, quantity=current.quantity + amount)
        uow.register_dirty(level)
    uow.commit()
    return level


def launch_product(store: InMemoryStore, product: Product, stock: Dict[str, int]) -> None:
    """
    Register the product on a parent unit of work and its stock on a child,
    so the catalogue entry is written before any stock rows.
    """

    catalogue = InMemoryUnitOfWork(store, config=UnitOfWorkConfig(child_order="after"))
    movements = InMemoryUnitOfWork(store)
    catalogue.register_new(product).add_child(movements)
    for warehouse, quantity in stock.items():
        movements.register_new(StockLevel(sku=product.sku, warehouse=warehouse, quantity=quantity))
    catalogue.commit()


def discontinue(store: InMemoryStore, sku: str) -> None:
    with InMemoryUnitOfWork(store) as uow:
        product = store.get(("product", sku))
        if product is not None:
            uow.register_deleted(product)
        for entity in store.values():
            if isinstance(entity, StockLevel) and entity.sku == sku:
                uow.register_deleted(entity)


def inventory_report(store: InMemoryStore) -> List[Dict[str, Any]]:
    products = sorted(
        (entity for entity in store.values() if isinstance(entity, Product)), key=lambda p: p.sku
    )
    report: List[Dict[str, Any]] = []
    for product in products:
        levels = [
            entity
            for entity in store.values()
            if isinstance(entity, StockLevel) and entity.sku == product.sku
        ]
        report.append(
            {
                "sku": product.sku,
                "name": product.name,
                "stock": {level.warehouse: level.quantity for level in levels},
            }
        )
    return report


def run_demo() -> List[Dict[str, Any]]:
    store = bootstrap_store()
    launch_product(store, Product(sku="MS-02", name="Mouse", price_cents=1900), {"north": 5, "south": 7})
    restock(store, "KB-01", "north", 5)
    launch_product(store, Product(sku="HD-03", name="Headset", price_cents=7900), {"south": 2})
    discontinue(store, "HD-03")
    return inventory_report(store)


if __name__ == "__main__":
    for entry in run_demo():
        stock = ", ".join(f"{name}={qty}" for name, qty in sorted(entry["stock"].items()))
        print(f"{entry['sku']} {entry['name']}: {stock}")
