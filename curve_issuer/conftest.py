import copy
import importlib

import pytest

import curve_issuer.core.config as issuer_config

# The package re-exports the class under the same name as its module.
chain_client_module = importlib.import_module("curve_issuer.core.clients.ChainClient")


def pytest_configure(config):
    config.addinivalue_line("markers", "smoke: mark test as a smoke test")
    config.addinivalue_line("markers", "integration: mark test as integration")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "smoke" in item.nodeid:
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch):
    for key in (
        "PRIVATE_KEY",
        "CURVE_ISSUER_CONFIG_PATH",
        "CURVE_ISSUER_CONFIG",
        "CURVE_ISSUER_WALLET_PATH",
        "CURVE_ISSUER_RPC_URL_BASE",
        "CURVE_ISSUER_RPC_URL_BASE_SEPOLIA",
    ):
        monkeypatch.delenv(key, raising=False)
    original = copy.deepcopy(issuer_config.CONFIG)
    yield
    issuer_config.set_config(original)
    chain_client_module._SIGNER_LOCKS.clear()
