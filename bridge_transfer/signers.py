"""
Signers

Per-platform signer construction and credential lookup:
- CredentialProvider implementations (.env / process environment, static dict)
- SignerFactoryRegistry: platform -> factory lookup, new platforms register
  without touching the orchestrator
- resolve_endpoint: chain -> TransferEndpoint (chain, signer, address)
"""

import os
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv
from loguru import logger

from .errors import CredentialError, UnsupportedPlatformError
from .interfaces import ChainEndpoint, CredentialProvider, Signer, SignerFactory
from .models import ChainAddress, TransferEndpoint


# Secret names per platform family
DEFAULT_SECRET_NAMES = {
    'evm': 'ETH_PRIVATE_KEY',
    'solana': 'SOL_PRIVATE_KEY',
}


class EnvCredentialProvider:
    """Read secrets from the process environment, loading `.env` once"""

    def __init__(self, dotenv_path: Optional[str] = None):
        self.dotenv_path = dotenv_path
        self._loaded = False

    def get_secret(self, name: str) -> str:
        if not self._loaded:
            load_dotenv(self.dotenv_path)
            self._loaded = True

        value = os.environ.get(name)
        if not value:
            raise CredentialError(f"Missing env var {name}, did you forget to set values in '.env'?")
        return value


class StaticCredentialProvider:
    """Secrets from an in-memory mapping"""

    def __init__(self, secrets: Dict[str, str]):
        self.secrets = dict(secrets)

    def get_secret(self, name: str) -> str:
        value = self.secrets.get(name)
        if not value:
            raise CredentialError(f"Missing secret {name}")
        return value


class SignerFactoryRegistry:
    """
    Platform-keyed signer factories

    Platform keys are case-insensitive ("Evm", "evm" and "EVM" are the same).
    """

    def __init__(self):
        self._factories: Dict[str, Tuple[SignerFactory, str]] = {}

    def register(self, platform: str, factory: SignerFactory, secret_name: Optional[str] = None):
        """
        Register a signer factory

        Args:
            platform: Platform family (e.g., "Evm", "Solana")
            factory: SignerFactory implementation
            secret_name: Credential key holding the private key
        """
        key = platform.lower()
        secret_name = secret_name or DEFAULT_SECRET_NAMES.get(key)
        if not secret_name:
            raise ValueError(f"No secret name known for platform {platform}, pass secret_name")

        if key in self._factories:
            logger.warning(f"Replacing signer factory for {platform}")
        self._factories[key] = (factory, secret_name)
        logger.debug(f"Registered signer factory for {platform} (secret: {secret_name})")

    def platforms(self):
        return sorted(self._factories)

    def is_supported(self, platform: str) -> bool:
        return platform.lower() in self._factories

    async def construct(
        self,
        chain: ChainEndpoint,
        credentials: CredentialProvider,
        options: Optional[Dict] = None
    ) -> Signer:
        """
        Build a signer for a chain

        Args:
            chain: ChainEndpoint
            credentials: CredentialProvider
            options: Platform-specific signer options

        Returns:
            Signer

        Raises:
            UnsupportedPlatformError: No factory for the chain's platform
            CredentialError: Secret missing
        """
        entry = self._factories.get(chain.platform.lower())
        if entry is None:
            raise UnsupportedPlatformError(f"Unrecognized platform: {chain.platform}")

        factory, secret_name = entry
        secret = credentials.get_secret(secret_name)
        return await factory.construct(chain, secret, options or {})


async def resolve_endpoint(
    chain: ChainEndpoint,
    registry: SignerFactoryRegistry,
    credentials: CredentialProvider,
    options: Optional[Dict[str, Dict]] = None
) -> TransferEndpoint:
    """
    Build the endpoint (chain, signer, address) for one side of a transfer

    Args:
        chain: ChainEndpoint
        registry: Signer factories
        credentials: CredentialProvider
        options: Signer options keyed by lower-case platform name

    Returns:
        TransferEndpoint
    """
    platform_options = (options or {}).get(chain.platform.lower(), {})
    signer = await registry.construct(chain, credentials, platform_options)
    address = ChainAddress(chain.name, signer.address())

    logger.info(f"✓ Signer ready for {chain.name}: {address.address}")

    return TransferEndpoint(chain=chain, signer=signer, address=address)
