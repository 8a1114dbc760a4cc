"""JSON-RPC connection configuration."""

import logging

import pytest
from web3 import AsyncHTTPProvider, AsyncWeb3

from vault_deposit.provider import create_async_web3, read_json_rpc_url
from vault_deposit.utils import get_url_domain, setup_console_logging


def test_read_json_rpc_url(monkeypatch):
    monkeypatch.setenv("JSON_RPC_URL", "https://example.com/rpc")
    assert read_json_rpc_url() == "https://example.com/rpc"


def test_read_json_rpc_url_custom_variable(monkeypatch):
    monkeypatch.setenv("JSON_RPC_BASE", "http://localhost:8545")
    assert read_json_rpc_url("JSON_RPC_BASE") == "http://localhost:8545"


def test_read_json_rpc_url_missing(monkeypatch):
    monkeypatch.delenv("JSON_RPC_URL", raising=False)
    with pytest.raises(ValueError):
        read_json_rpc_url()


def test_create_async_web3():
    """Connection is created lazily, no node needed."""
    web3 = create_async_web3("http://localhost:8545", request_timeout=5)
    assert isinstance(web3, AsyncWeb3)
    assert isinstance(web3.provider, AsyncHTTPProvider)
    assert web3.provider.endpoint_uri == "http://localhost:8545"


def test_create_async_web3_bad_url():
    with pytest.raises(AssertionError):
        create_async_web3("wss://example.com")


def test_get_url_domain():
    """API keys in the path are not leaked to logs."""
    assert get_url_domain("https://mainnet.infura.io/v3/secret") == "mainnet.infura.io"
    assert get_url_domain("http://localhost:8545") == "localhost:8545"


def test_setup_console_logging(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    root = setup_console_logging()
    assert root is logging.getLogger()
    assert logging.getLogger("web3.RequestManager").level == logging.WARNING
