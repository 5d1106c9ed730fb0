from .demo import (  # noqa: F401
    bootstrap_store,
    discontinue,
    inventory_report,
    launch_product,
    restock,
    run_demo,
)

__all__ = [
    "bootstrap_store",
    "discontinue",
    "inventory_report",
    "launch_product",
    "restock",
    "run_demo",
]
