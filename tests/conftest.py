"""
Shared fixtures. The environment is pinned to the test configuration before
any price_audit module is imported.
"""

import os

os.environ["ENV"] = "test"
os.environ.setdefault("LLM_MOCK_MODE", "true")

import pytest

from price_audit.engine.baselines import BaselineStore
from price_audit.state import AuditLedger


@pytest.fixture
def store():
    return BaselineStore(name_matching="exact")


@pytest.fixture
def ledger():
    return AuditLedger(baselines=BaselineStore(name_matching="exact"))
