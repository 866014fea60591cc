from unittest import mock

from django.test import SimpleTestCase

from logistic.config import Settings


class SettingsTest(SimpleTestCase):
    def load(self, **environ):
        with mock.patch.dict("os.environ", environ, clear=True):
            return Settings(_env_file=None)

    def test_defaults(self):
        config = self.load()

        self.assertTrue(config.DEBUG)
        self.assertEqual(config.ALLOWED_HOSTS, ["localhost", "127.0.0.1"])
        self.assertTrue(config.uses_sqlite)
        self.assertEqual(config.ISSUE_SLA_HOURS, 24)

    def test_environment_values_are_typed(self):
        config = self.load(
            DEBUG="false", ISSUE_SLA_HOURS="48", API_PAGE_SIZE="20",
            DB_ENGINE="django.db.backends.postgresql",
        )

        self.assertFalse(config.DEBUG)
        self.assertEqual(config.ISSUE_SLA_HOURS, 48)
        self.assertEqual(config.API_PAGE_SIZE, 20)
        self.assertFalse(config.uses_sqlite)

    def test_allowed_hosts_accepts_comma_list_and_json(self):
        self.assertEqual(self.load(ALLOWED_HOSTS="erp.example.com, api.example.com").ALLOWED_HOSTS,
                         ["erp.example.com", "api.example.com"])
        self.assertEqual(self.load(ALLOWED_HOSTS='["erp.example.com"]').ALLOWED_HOSTS, ["erp.example.com"])
