"""
Holder for the last-saved copy of the product.
"""

import logging
from typing import Optional

from product_editor.models import Product, Snapshot, Variant

logger = logging.getLogger(__name__)


class SnapshotManager:
    """
    Keeps exactly one live Snapshot.

    A snapshot is built completely before it replaces the previous one, so
    callers never observe a partial baseline. The stored baseline is never
    handed out: every accessor returns a deep copy, so the only way to change
    it is to take a new snapshot.
    """

    def __init__(self):
        self._snapshot: Optional[Snapshot] = None

    def take_snapshot(self, product: Product) -> Snapshot:
        """Deep-copy the product (variants included) and install it as the baseline."""
        self._snapshot = Snapshot(product=product.model_copy(deep=True))
        logger.debug(
            f"Snapshot taken with {len(self._snapshot.variants)} variants",
        )
        return self.get_snapshot()

    def get_snapshot(self) -> Optional[Snapshot]:
        if self._snapshot is None:
            return None
        return self._snapshot.model_copy(deep=True)

    def clear(self) -> None:
        self._snapshot = None

    @property
    def product(self) -> Optional[Product]:
        if self._snapshot is None:
            return None
        return self._snapshot.product.model_copy(deep=True)

    @property
    def variants(self) -> list[Variant]:
        if self._snapshot is None:
            return []
        return [v.model_copy(deep=True) for v in self._snapshot.variants]
