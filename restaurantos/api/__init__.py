"""
HTTP API

One router per area; ``main`` mounts every router in ``ROUTERS``.
"""

from restaurantos.api import (
    assistant,
    auth,
    company,
    dashboards,
    inventory,
    invoices,
    menu,
    orders,
    realtime,
    reports,
    tables,
    voice_orders,
)

ROUTERS = [
    auth.router,
    menu.router,
    orders.router,
    tables.router,
    dashboards.router,
    inventory.router,
    reports.router,
    voice_orders.router,
    invoices.router,
    assistant.router,
    company.router,
    realtime.router,
]

__all__ = ["ROUTERS"]
