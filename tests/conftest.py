import os
from pathlib import Path

import pytest

pytest_plugins = ["conf_env", "conf_core", "conf_utils"]

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="session", autouse=True)
def project_root():
    # contract, migration and manifest paths are relative to the repo root
    prev = os.getcwd()
    os.chdir(PROJECT_ROOT)
    yield PROJECT_ROOT
    os.chdir(prev)
