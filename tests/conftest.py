"""
Test environment.

Runs before any ``restaurantos`` import: a throwaway SQLite database and
data directory, mock services without latency or failures, and Celery in
eager mode.
"""

import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="restaurantos-tests-")

os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["DATA_DIRECTORY"] = os.path.join(_TMP, "data")
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["MOCK_FAILURE_RATE"] = "0"
os.environ["MOCK_MAX_LATENCY"] = "0"
os.environ["SEED_DEMO_MENU"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

from restaurantos.core.config import get_settings  # noqa: E402

get_settings.cache_clear()
