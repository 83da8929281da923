import unittest

from relay.config import DEFAULT_PORT, RelayConfig, load_config


class TestLoadConfig(unittest.TestCase):

    def test_defaults(self):
        config = load_config({})
        self.assertEqual(config, RelayConfig())
        self.assertEqual(config.port, DEFAULT_PORT)
        self.assertEqual(config.typing_timeout, 5.0)
        self.assertEqual(config.sweep_interval, 5.0)

    def test_values_from_env(self):
        config = load_config({
            "PORT": "8080",
            "SERVER_HOST": "127.0.0.1",
            "CORS_ORIGIN": "https://chat.example.com",
            "TYPING_TIMEOUT_MS": "3000",
            "TYPING_SWEEP_INTERVAL_MS": "1000",
            "RATE_LIMIT_PER_MINUTE": "10",
            "SEND_TIMEOUT_MS": "250",
            "LOG_LEVEL": "debug",
        })
        self.assertEqual(config.port, 8080)
        self.assertEqual(config.host, "127.0.0.1")
        self.assertEqual(config.cors_origin, "https://chat.example.com")
        self.assertEqual(config.typing_timeout, 3.0)
        self.assertEqual(config.sweep_interval, 1.0)
        self.assertEqual(config.rate_limit_per_minute, 10)
        self.assertEqual(config.send_timeout, 0.25)
        self.assertEqual(config.log_level, "DEBUG")

    def test_invalid_number_falls_back(self):
        with self.assertLogs("chat_relay", level="WARNING"):
            config = load_config({"PORT": "http", "TYPING_TIMEOUT_MS": "-1"})
        self.assertEqual(config.port, DEFAULT_PORT)
        self.assertEqual(config.typing_timeout, 5.0)


if __name__ == "__main__":
    unittest.main()
