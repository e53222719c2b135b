import json
import shutil
import unittest

from restaurantos.schemas import CompanySettings
from restaurantos.services.company_settings import CompanySettingsStore, SettingsValidationError


class CompanySettingsStoreTests(unittest.TestCase):
    def setUp(self):
        shutil.rmtree(CompanySettingsStore.path().parent, ignore_errors=True)

    def test_defaults_when_nothing_stored(self):
        self.assertEqual(CompanySettingsStore.load(), CompanySettings())

    def test_save_and_load(self):
        company = CompanySettings(name="Trattoria Roma", city="10115 Berlin", email="kasse@roma.de")
        CompanySettingsStore.save(company)

        stored = json.loads(CompanySettingsStore.path().read_text(encoding="utf-8"))
        self.assertEqual(stored["name"], "Trattoria Roma")
        self.assertEqual(CompanySettingsStore.load(), company)

    def test_umlauts_are_kept_readable(self):
        CompanySettingsStore.save(CompanySettings(name="Gasthaus Zur Mühle"))
        self.assertIn("Mühle", CompanySettingsStore.path().read_text(encoding="utf-8"))

    def test_rejects_blank_name_and_bad_email(self):
        with self.assertRaises(SettingsValidationError):
            CompanySettingsStore.save(CompanySettings(name="  "))
        with self.assertRaises(SettingsValidationError):
            CompanySettingsStore.save(CompanySettings(email="kasse.roma.de"))
        self.assertFalse(CompanySettingsStore.path().exists())

    def test_unreadable_file_falls_back_to_defaults(self):
        path = CompanySettingsStore.path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json", encoding="utf-8")
        self.assertEqual(CompanySettingsStore.load(), CompanySettings())


if __name__ == "__main__":
    unittest.main()
