"""
Bridge Transfer Configuration

Loads bridge_config.yaml with defaults for every key. A missing or unreadable
file falls back to the defaults; invalid values are rejected.
"""

import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = "bridge_config.yaml"


def _default_signer_options() -> Dict[str, Dict]:
    return {
        'solana': {
            'debug': True,
            'priority_fee': {
                'percentile': 0.5,           # middle priority fee
                'percentile_multiple': 2,    # on top of the percentile
                'min': 1,                    # lamports per compute unit
                'max': 1000,
            },
        },
    }


@dataclass
class BridgeConfig:
    """Orchestrator settings (durations in seconds)"""
    network: str = "Mainnet"

    # Attestation wait (manual delivery)
    attestation_timeout: float = 60.0
    attestation_poll_interval: float = 2.0

    # Relay status polling (automatic delivery)
    relay_api_url: str = "https://relayer.dev.stable.io"
    relay_poll_interval: float = 5.0
    relay_timeout: float = 60.0

    # State tracking safety net
    tracker_timeout: float = 600.0
    tracker_max_updates: int = 100
    tracker_poll_interval: float = 5.0

    # Transfer legs per orchestration (2 = round trip)
    max_legs: int = 2

    signer_options: Dict[str, Dict] = field(default_factory=_default_signer_options)

    def __post_init__(self):
        for name in ('attestation_poll_interval', 'relay_poll_interval', 'tracker_poll_interval'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ('attestation_timeout', 'relay_timeout', 'tracker_timeout'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.tracker_max_updates < 1:
            raise ValueError("tracker_max_updates must be at least 1")
        if self.max_legs < 1:
            raise ValueError("max_legs must be at least 1")

        self.signer_options = {k.lower(): v for k, v in (self.signer_options or {}).items()}

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'BridgeConfig':
        data = dict(data or {})
        known = {f.name for f in fields(cls)}

        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {unknown}")

        values = {k: v for k, v in data.items() if k in known}

        # Merge platform options over the defaults
        if 'signer_options' in values:
            merged = _default_signer_options()
            for platform, options in (values['signer_options'] or {}).items():
                merged.setdefault(platform.lower(), {}).update(options or {})
            values['signer_options'] = merged

        return cls(**values)


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> BridgeConfig:
    """
    Load configuration from YAML

    Args:
        config_path: Path to config file

    Returns:
        BridgeConfig (defaults when the file is missing or unreadable)

    Raises:
        ValueError: Config present but holds invalid values
    """
    config_file = Path(config_path)
    if not config_file.exists():
        logger.info(f"Config {config_path} not found, using defaults")
        return BridgeConfig()

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}, using defaults")
        return BridgeConfig()

    if not isinstance(data, dict):
        logger.warning(f"Config {config_path} is not a mapping, using defaults")
        return BridgeConfig()

    config = BridgeConfig.from_dict(data.get('bridge', data))
    logger.info(f"Loaded config from {config_path} (network: {config.network})")
    return config


def configure_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Route loguru output to stderr (and optionally a rotating file)"""
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_file:
        logger.add(log_file, level=level, rotation="10 MB", retention=5)
