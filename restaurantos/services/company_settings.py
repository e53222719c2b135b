"""
Company Settings Store

The company block printed on invoices is one JSON document in the data
directory. Reads and writes hold a file lock so concurrent API workers do
not interleave.
"""

import json
import logging
from pathlib import Path

from filelock import FileLock
from pydantic import ValidationError

from restaurantos.core.config import get_settings
from restaurantos.schemas import CompanySettings

logger = logging.getLogger(__name__)


class SettingsValidationError(ValueError):
    """Company settings failed validation."""


def validate_company_settings(company: CompanySettings) -> CompanySettings:
    if not company.name.strip():
        raise SettingsValidationError("Company name is required")
    if "@" not in company.email:
        raise SettingsValidationError("A valid email address is required")
    return company


class CompanySettingsStore:
    """Load and save ``CompanySettings`` as JSON."""

    @classmethod
    def path(cls) -> Path:
        settings = get_settings()
        return Path(settings.data_directory) / settings.company_settings_filename

    @classmethod
    def _lock(cls) -> FileLock:
        return FileLock(str(cls.path()) + ".lock", timeout=get_settings().file_lock_timeout)

    @classmethod
    def load(cls) -> CompanySettings:
        """Return the stored settings, or the defaults when none are stored or the file is unreadable."""
        path = cls.path()
        if not path.exists():
            return CompanySettings()

        with cls._lock():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                return CompanySettings(**data)
            except (ValueError, TypeError, ValidationError) as e:
                logger.warning(f"Ignoring unreadable company settings {path}: {e}")
                return CompanySettings()

    @classmethod
    def save(cls, company: CompanySettings) -> CompanySettings:
        """
        Validate and persist ``company``.

        Raises:
            SettingsValidationError: If the name is blank or the email has no "@"
        """
        validate_company_settings(company)
        path = cls.path()
        path.parent.mkdir(parents=True, exist_ok=True)

        with cls._lock():
            path.write_text(
                json.dumps(company.model_dump(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        logger.info(f"Company settings saved ({company.name})")
        return company
