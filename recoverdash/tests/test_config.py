import os
import unittest
from pathlib import Path
from unittest.mock import patch

from recoverdash import config


class ConfigHelperTests(unittest.TestCase):
    def test_env_list_splits_and_trims(self) -> None:
        with patch.dict(os.environ, {"RD_TEST_LIST": " work, clients ,,scratch "}):
            self.assertEqual(config._env_list("RD_TEST_LIST"), ("work", "clients", "scratch"))
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("RD_TEST_LIST", None)
            self.assertEqual(config._env_list("RD_TEST_LIST", ("x",)), ("x",))

    def test_env_bool_and_int_fall_back_on_bad_values(self) -> None:
        with patch.dict(os.environ, {"RD_TEST_BOOL": "Yes", "RD_TEST_INT": "many"}):
            self.assertTrue(config._env_bool("RD_TEST_BOOL"))
            self.assertEqual(config._env_int("RD_TEST_INT", 7), 7)

    def test_default_history_dir_per_platform(self) -> None:
        with patch.dict(os.environ, {"APPDATA": "C:/Users/alice/AppData/Roaming"}):
            windows = config.default_history_dir("cursor", system="Windows")
        self.assertEqual(windows, Path("C:/Users/alice/AppData/Roaming") / "Cursor" / "User" / "History")

        mac = config.default_history_dir("code", system="Darwin")
        self.assertEqual(mac, Path.home() / "Library" / "Application Support" / "Code" / "User" / "History")

        linux = config.default_history_dir("unknown-editor", system="Linux")
        self.assertEqual(linux, Path.home() / ".config" / "Cursor" / "User" / "History")


if __name__ == "__main__":
    unittest.main()
