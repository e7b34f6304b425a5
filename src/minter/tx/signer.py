"""
Transaction Signer - holds the bot's signing keypair.

Signature computation itself is done by substrate-interface when an
extrinsic is created; this module owns loading and exposing the key.
"""

from typing import Optional

import structlog
from substrateinterface import Keypair, KeypairType

from minter.config import ConfigurationError, MinterConfig

logger = structlog.get_logger(__name__)


class TransactionSigner:
    """
    Handles the minter's signing key.

    The key is loaded from a secret URI: a mnemonic, a hex seed, or a
    development URI such as ``//Alice``, optionally with a derivation path.

    Security note: In production, consider using a HSM or
    secure key management service.
    """

    def __init__(self, config: MinterConfig):
        """
        Initialize the transaction signer.

        Args:
            config: Minter configuration
        """
        self.config = config
        self._keypair: Optional[Keypair] = None

    def load_key_from_uri(self, uri: str, ss58_format: int) -> None:
        """
        Load an sr25519 keypair from a secret URI.

        Args:
            uri: Secret URI or mnemonic
            ss58_format: Address format of the target chain
        """
        try:
            self._keypair = Keypair.create_from_uri(
                uri,
                ss58_format=ss58_format,
                crypto_type=KeypairType.SR25519,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid signing key: {e}") from e

        logger.info("signing_key_loaded", address=self.address)

    def load_from_config(self, ss58_format: Optional[int]) -> None:
        """
        Load the signing key from configuration.

        Args:
            ss58_format: Address format announced by the chain
        """
        if ss58_format is None:
            raise ConfigurationError("Chain ss58Format is not set")
        if not self.config.bot_key:
            raise ConfigurationError("BOT_KEY is not set")

        self.load_key_from_uri(self.config.bot_key, ss58_format)

    @property
    def keypair(self) -> Keypair:
        """Get the loaded keypair."""
        if not self._keypair:
            raise RuntimeError("No signing key loaded")
        return self._keypair

    @property
    def address(self) -> Optional[str]:
        """Get the minter's SS58 address."""
        return self._keypair.ss58_address if self._keypair else None

    @property
    def is_loaded(self) -> bool:
        """Check if a signing key is loaded."""
        return self._keypair is not None
