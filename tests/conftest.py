"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import os
import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of testreporter modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("testreporter"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep user config and TEST_REPORTER__ env vars out of every test."""
    for key in list(os.environ):
        if key.startswith("TEST_REPORTER__"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(
        "testreporter.config.loader.GLOBAL_CONFIG_PATH",
        tmp_path / "no-global-config.yaml",
    )
