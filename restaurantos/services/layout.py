"""
Floor Plan Layout

Seat positions around a table, as percentages of the table's 100×100
bounding box (seat 1 first), plus the default floor plan.
"""

import math
from dataclasses import dataclass
from typing import Iterable

from restaurantos.models import ACTIVE_ORDER_STATUSES, OrderStatus, TableStatus


@dataclass(frozen=True)
class SeatPosition:
    x: float
    y: float


# (number, seats, shape, status, x, y)
DEFAULT_TABLES = (
    (1, 2, "round", "available", 100, 100),
    (2, 4, "square", "occupied", 300, 100),
    (3, 6, "rectangular", "available", 500, 100),
    (4, 4, "oval", "reserved", 100, 300),
    (5, 8, "rectangular", "occupied", 300, 300),
    (6, 2, "round", "cleaning", 500, 300),
    (7, 6, "oval", "available", 100, 500),
    (8, 4, "square", "available", 300, 500),
)


def _ellipse(seat_count: int, radius_x: float, radius_y: float, start: float) -> list[SeatPosition]:
    positions = []
    for i in range(seat_count):
        angle = i * 2 * math.pi / seat_count + start
        positions.append(SeatPosition(
            x=50 + radius_x * math.cos(angle),
            y=50 + radius_y * math.sin(angle),
        ))
    return positions


def _square(seat_count: int) -> list[SeatPosition]:
    per_side = math.ceil(seat_count / 4)
    positions = []
    for i in range(seat_count):
        side, index = divmod(i, per_side)
        ratio = index / (per_side - 1) if per_side > 1 else 0.5
        if side == 0:  # top
            positions.append(SeatPosition(20 + ratio * 60, 10))
        elif side == 1:  # right
            positions.append(SeatPosition(90, 20 + ratio * 60))
        elif side == 2:  # bottom
            positions.append(SeatPosition(80 - ratio * 60, 90))
        else:  # left
            positions.append(SeatPosition(10, 80 - ratio * 60))
    return positions


def _rectangular(seat_count: int) -> list[SeatPosition]:
    top = math.ceil(seat_count / 2)
    bottom = seat_count - top
    positions = [
        SeatPosition(15 + i * 70 / ((top - 1) or 1), 10) for i in range(top)
    ]
    positions += [
        SeatPosition(85 - j * 70 / ((bottom - 1) or 1), 90) for j in range(bottom)
    ]
    return positions


def seat_positions(shape: str, seat_count: int) -> list[SeatPosition]:
    """
    Compute where each seat is drawn around a table.

    Args:
        shape: round, oval, square or rectangular; anything else is drawn
            as a circle starting at the right
        seat_count: Number of seats

    Returns:
        One position per seat, in seat order
    """
    if seat_count <= 0:
        return []
    if shape == "round":
        return _ellipse(seat_count, 40, 40, -math.pi / 2)
    if shape == "oval":
        return _ellipse(seat_count, 45, 35, -math.pi / 2)
    if shape == "square":
        return _square(seat_count)
    if shape == "rectangular":
        return _rectangular(seat_count)
    return _ellipse(seat_count, 40, 40, 0)


def effective_table_status(stored_status: TableStatus, order_statuses: Iterable[OrderStatus]) -> TableStatus:
    """A table with any active order shows as occupied, otherwise its stored status."""
    if any(status in ACTIVE_ORDER_STATUSES for status in order_statuses):
        return TableStatus.OCCUPIED
    return stored_status
