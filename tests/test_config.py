import sys
import os
import unittest

# Add parent directory to path to import modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import ConfigError, DEFAULT_DATABASE_URL, load_settings


class TestLoadSettings(unittest.TestCase):
    def test_defaults(self):
        settings = load_settings({})

        self.assertEqual(settings.database_url, DEFAULT_DATABASE_URL)
        self.assertEqual(settings.notification.url, "")
        self.assertEqual(settings.notification.timeout, 10.0)
        self.assertFalse(settings.notification.deduplicate)
        self.assertEqual(settings.renewal_window_hours, 24.0)
        self.assertEqual(settings.cors_origins, ["http://localhost:8080", "http://127.0.0.1:8080"])
        self.assertEqual(settings.log_level, "INFO")

    def test_reads_values(self):
        settings = load_settings({
            "DATABASE_URL": "postgresql://u:p@db/subs",
            "NOTIFICATION_URL": " https://notify.example.com/send ",
            "NOTIFICATION_EMAIL": "me@example.com",
            "NOTIFICATION_TIMEOUT": "2.5",
            "NOTIFY_DEDUPLICATE": "yes",
            "RENEWAL_WINDOW_HOURS": "48",
            "CORS_ORIGINS": "https://a.example.com, https://b.example.com,",
            "LOG_LEVEL": "debug",
        })

        self.assertEqual(settings.database_url, "postgresql://u:p@db/subs")
        self.assertEqual(settings.notification.url, "https://notify.example.com/send")
        self.assertEqual(settings.notification.email, "me@example.com")
        self.assertEqual(settings.notification.timeout, 2.5)
        self.assertTrue(settings.notification.deduplicate)
        self.assertEqual(settings.renewal_window_hours, 48.0)
        self.assertEqual(settings.cors_origins, ["https://a.example.com", "https://b.example.com"])
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_values_raise(self):
        with self.assertRaises(ConfigError):
            load_settings({"NOTIFICATION_TIMEOUT": "soon"})
        with self.assertRaises(ConfigError):
            load_settings({"RENEWAL_WINDOW_HOURS": "-1"})
        with self.assertRaises(ConfigError):
            load_settings({"NOTIFY_DEDUPLICATE": "maybe"})

    def test_non_finite_numbers_raise(self):
        for value in ("nan", "inf", "-inf"):
            with self.assertRaises(ConfigError):
                load_settings({"NOTIFICATION_TIMEOUT": value})

    def test_unknown_log_level_raises(self):
        with self.assertRaises(ConfigError):
            load_settings({"LOG_LEVEL": "VERBOSE"})
        self.assertEqual(load_settings({"LOG_LEVEL": " warning "}).log_level, "WARNING")


if __name__ == '__main__':
    unittest.main()
