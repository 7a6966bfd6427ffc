"""Aggregate status of a master order.

A master order is only as advanced as its least advanced living child.
Archived children are closed out and do not hold the aggregate back;
when every child is archived the aggregate is archived too.
"""

from __future__ import annotations

from typing import Iterable

from modules.orders.constants import STATUS_RANK, PurchaseOrderStatus


def aggregate(child_statuses: Iterable[str]) -> str:
    """Return the aggregate status for a non-empty collection of statuses.

    Raises ``ValueError`` for an empty collection or an unknown status.
    """
    statuses = list(child_statuses)
    if not statuses:
        raise ValueError("Aggregate status of an empty order group is undefined.")

    unknown = [status for status in statuses if status not in STATUS_RANK]
    if unknown:
        raise ValueError(f"Unknown purchase order status: {unknown[0]!r}")

    living = [s for s in statuses if s != PurchaseOrderStatus.ARCHIVED]
    if not living:
        return PurchaseOrderStatus.ARCHIVED
    return PurchaseOrderStatus(min(living, key=STATUS_RANK.__getitem__))
