"""Shared fixtures for the API tests."""

import asyncio
import shutil
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from restaurantos.core.config import get_settings
from restaurantos.database import async_session_maker, drop_db, init_db
from restaurantos.main import app
from restaurantos.models import InventoryItem, MenuItem
from restaurantos.services.ai import MockAIService, get_ai_service
from restaurantos.services.events import reset_event_broker
from restaurantos.services.notifications import (
    MockNotificationService,
    get_notification_service,
    reset_notification_service,
)
from restaurantos.services.seed import seed_inventory, seed_tables


async def _reset_database() -> None:
    await drop_db()
    await init_db()


async def _seed_floor() -> None:
    async with async_session_maker() as db:
        await seed_tables(db)
        await seed_inventory(db)
        await db.commit()


async def _add(instance):
    async with async_session_maker() as db:
        db.add(instance)
        await db.commit()
        await db.refresh(instance)
        return instance


class ApiTestCase(unittest.TestCase):
    """Fresh database, mock services and a signed-in user per role on demand."""

    seed_floor = True

    def setUp(self):
        asyncio.run(_reset_database())
        if self.seed_floor:
            asyncio.run(_seed_floor())

        data_dir = Path(get_settings().data_directory)
        if data_dir.exists():
            shutil.rmtree(data_dir)

        reset_event_broker()
        reset_notification_service()
        self.notifier = get_notification_service()
        assert isinstance(self.notifier, MockNotificationService)

        self.ai = MockAIService(max_latency=0)
        app.dependency_overrides[get_ai_service] = lambda: self.ai
        self.client = TestClient(app)
        self._users = {}

    def tearDown(self):
        app.dependency_overrides.clear()

    # -------------------------------------------------------------------------

    def sign_up(self, role: str, email: str = None, name: str = None) -> dict:
        email = email or f"{role}@restaurantos.de"
        response = self.client.post("/api/auth/signup", json={
            "email": email,
            "password": "secret123",
            "name": name or role.title(),
            "role": role,
        })
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def headers(self, role: str) -> dict:
        """Authorization header for a (lazily created) user of ``role``."""
        if role not in self._users:
            self._users[role] = self.sign_up(role)
        return {"Authorization": f"Bearer {self._users[role]['access_token']}"}

    def user_id(self, role: str) -> str:
        self.headers(role)
        return self._users[role]["user"]["id"]

    def add_menu_item(self, name: str, price: float, category: str = "Main Course", **fields) -> MenuItem:
        return asyncio.run(_add(MenuItem(
            name=name,
            description=fields.pop("description", f"{name} from the kitchen"),
            price=price,
            category=category,
            **fields,
        )))

    def add_inventory_item(self, name: str, quantity: float, **fields) -> InventoryItem:
        return asyncio.run(_add(InventoryItem(name=name, quantity=quantity, **fields)))

    def run_async(self, coro):
        return asyncio.run(coro)
