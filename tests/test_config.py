"""Tests for configuration loading."""

from __future__ import annotations

import sys

import pytest
from loguru import logger

from bridge_transfer.config import BridgeConfig, configure_logging, load_config


def test_defaults() -> None:
    config = BridgeConfig()

    assert config.attestation_timeout == 60.0
    assert config.relay_poll_interval == 5.0
    assert config.max_legs == 2
    assert config.signer_options['solana']['priority_fee']['max'] == 1000


def test_missing_file_uses_defaults(tmp_path) -> None:
    config = load_config(str(tmp_path / "nope.yaml"))

    assert config == BridgeConfig()


def test_load_bridge_section(tmp_path) -> None:
    path = tmp_path / "bridge_config.yaml"
    path.write_text(
        "bridge:\n"
        "  network: Testnet\n"
        "  attestation_timeout: 30\n"
        "  signer_options:\n"
        "    Solana:\n"
        "      debug: false\n"
        "    Evm:\n"
        "      gas_limit: 250000\n"
    )

    config = load_config(str(path))

    assert config.network == "Testnet"
    assert config.attestation_timeout == 30
    assert config.signer_options['solana']['debug'] is False
    # untouched defaults survive the merge
    assert config.signer_options['solana']['priority_fee']['percentile'] == 0.5
    assert config.signer_options['evm'] == {'gas_limit': 250000}


def test_flat_file_and_unknown_keys(tmp_path) -> None:
    path = tmp_path / "bridge_config.yaml"
    path.write_text("relay_timeout: 120\nwhatever: 1\n")

    config = load_config(str(path))

    assert config.relay_timeout == 120


@pytest.mark.parametrize("content", ["bridge: [unclosed\n", "- just\n- a list\n"])
def test_unreadable_file_uses_defaults(tmp_path, content) -> None:
    path = tmp_path / "bridge_config.yaml"
    path.write_text(content)

    assert load_config(str(path)) == BridgeConfig()


def test_invalid_values_are_rejected(tmp_path) -> None:
    path = tmp_path / "bridge_config.yaml"
    path.write_text("attestation_poll_interval: 0\n")

    with pytest.raises(ValueError, match="attestation_poll_interval"):
        load_config(str(path))


def test_max_legs_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BridgeConfig(max_legs=0)


def test_configure_logging_writes_file(tmp_path) -> None:
    log_file = tmp_path / "bridge.log"
    configure_logging("DEBUG", str(log_file))
    try:
        logger.debug("relay poll")
        logger.complete()
        assert "relay poll" in log_file.read_text()
    finally:
        logger.remove()
        logger.add(sys.stderr)
