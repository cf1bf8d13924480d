from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Anvil / Hardhat account #0 (DO NOT USE IN PRODUCTION)
ANVIL_KEY_0 = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ANVIL_ADDR_0 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

# Second fixed test key (DO NOT USE IN PRODUCTION)
ANVIL_KEY_1 = "0x59c6995e998f97a5a0044966f0945382d1b83f5f8b2e70e9a1baddb5f9d0c2d7"
ANVIL_ADDR_1 = "0xC37054b8d8C965DaaA1F891ffB009FB1d4A43504"


@pytest.fixture()
def reserve_key() -> str:
    return ANVIL_KEY_0


@pytest.fixture()
def batch_id() -> str:
    return "ab" * 32


@pytest.fixture()
def reference() -> str:
    return "cd" * 32


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Developer shells may export HOSTASIS_*; tests must not see them."""

    for name in list(os.environ):
        if name.startswith("HOSTASIS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("hostasis")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
