import os
import tempfile
import unittest
from unittest.mock import patch

import toml

from how.config import Config, DEFAULT_FALLBACK_MODEL, DEFAULT_MODEL


class TestConfig(unittest.TestCase):
    """Test cases for the Config class."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_file = os.path.join(self.tmp.name, "how", "config.toml")

    def tearDown(self):
        self.tmp.cleanup()

    def _env(self, **extra):
        env = {"HOW_CONFIG_FILE": self.config_file}
        env.update(extra)
        return env

    def _write_file(self, data):
        os.makedirs(os.path.dirname(self.config_file), exist_ok=True)
        with open(self.config_file, "w") as f:
            toml.dump(data, f)

    def test_default_values(self):
        """Test that default values are set correctly."""
        with patch.dict(os.environ, self._env(GEMINI_API_KEY="test_key"), clear=True):
            config = Config()

            self.assertEqual(config.api_key, "test_key")
            self.assertEqual(config.model, DEFAULT_MODEL)
            self.assertEqual(config.fallback_model, DEFAULT_FALLBACK_MODEL)
            self.assertEqual(config.max_attempts, 5)
            self.assertEqual(config.log_dir, os.path.join(os.path.dirname(self.config_file), "logs"))
            self.assertFalse(config.verbose)
            # Nothing is written until a value is set
            self.assertFalse(os.path.exists(self.config_file))

    def test_custom_values(self):
        """Test that custom values from environment variables are set correctly."""
        env_vars = self._env(
            GEMINI_API_KEY="custom_key",
            GEMINI_MODEL="custom-model",
            HOW_FALLBACK_MODEL="other-model",
            HOW_MAX_ATTEMPTS="3",
            HOW_LOG_DIR="/custom/log/dir",
            HOW_VERBOSE="true",
            SHELL="/bin/zsh",
        )

        with patch.dict(os.environ, env_vars, clear=True):
            config = Config()

            self.assertEqual(config.api_key, "custom_key")
            self.assertEqual(config.model, "custom-model")
            self.assertEqual(config.fallback_model, "other-model")
            self.assertEqual(config.max_attempts, 3)
            self.assertEqual(config.log_dir, "/custom/log/dir")
            self.assertEqual(config.shell, "/bin/zsh")
            self.assertTrue(config.verbose)

    def test_invalid_max_attempts_falls_back_to_default(self):
        for value in ("zero", "0", "-2"):
            with patch.dict(os.environ, self._env(HOW_MAX_ATTEMPTS=value), clear=True):
                self.assertEqual(Config().max_attempts, 5)

    def test_file_values_used_when_env_is_unset(self):
        self._write_file({"model": "file-model", "max_attempts": 7})
        with patch.dict(os.environ, self._env(), clear=True):
            config = Config()
            self.assertEqual(config.model, "file-model")
            self.assertEqual(config.max_attempts, 7)

    def test_env_overrides_file(self):
        self._write_file({"log_dir": "/file/logs"})
        with patch.dict(os.environ, self._env(HOW_LOG_DIR="/env/logs"), clear=True):
            self.assertEqual(Config().log_dir, "/env/logs")

    def test_env_model_used_when_none_stored(self):
        with patch.dict(os.environ, self._env(GEMINI_MODEL="env-model"), clear=True):
            self.assertEqual(Config().model, "env-model")

    def test_stored_api_key_wins_over_environment(self):
        self._write_file({"api_key": "stored_key"})
        with patch.dict(os.environ, self._env(GEMINI_API_KEY="env_key"), clear=True):
            self.assertEqual(Config().api_key, "stored_key")

    def test_stored_model_wins_over_environment(self):
        self._write_file({"model": "stored-model"})
        with patch.dict(os.environ, self._env(GEMINI_MODEL="env-model"), clear=True):
            self.assertEqual(Config().model, "stored-model")

    def test_google_api_key_fallback(self):
        with patch.dict(os.environ, self._env(GOOGLE_API_KEY="google_key"), clear=True):
            self.assertEqual(Config().api_key, "google_key")

    def test_set_persists_and_refreshes(self):
        with patch.dict(os.environ, self._env(), clear=True):
            config = Config()
            self.assertIsNone(config.api_key)

            config.set("api_key", "new_key")
            config.set("model", "gemini-pro")

            self.assertEqual(config.api_key, "new_key")
            self.assertEqual(config.get("model"), "gemini-pro")
            with open(self.config_file) as f:
                stored = toml.load(f)
            self.assertEqual(stored, {"api_key": "new_key", "model": "gemini-pro"})

            reloaded = Config()
            self.assertEqual(reloaded.api_key, "new_key")
            self.assertEqual(reloaded.model, "gemini-pro")

    def test_get_returns_default_for_unset_key(self):
        with patch.dict(os.environ, self._env(), clear=True):
            config = Config()
            self.assertIsNone(config.get("api_key"))
            self.assertEqual(config.get("api_key", "fallback"), "fallback")
            self.assertEqual(config.get("unknown", 42), 42)

    def test_unreadable_file_is_ignored(self):
        os.makedirs(os.path.dirname(self.config_file), exist_ok=True)
        with open(self.config_file, "w") as f:
            f.write("this is = = not toml")
        with patch.dict(os.environ, self._env(), clear=True):
            with self.assertLogs("how.config", level="WARNING"):
                config = Config()
            self.assertEqual(config.model, DEFAULT_MODEL)

    def test_str_masks_api_key(self):
        with patch.dict(os.environ, self._env(GEMINI_API_KEY="abcd1234efgh5678"), clear=True):
            text = str(Config())
            self.assertNotIn("abcd1234efgh5678", text)
            self.assertIn("abcd...5678", text)


if __name__ == "__main__":
    unittest.main()
