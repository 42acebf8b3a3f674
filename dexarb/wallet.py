"""Signing wallet backed by a Solana keypair."""

import json
import os
from pathlib import Path
from typing import Union
from loguru import logger
from solders.keypair import Keypair

from .config import Config
from .errors import ConfigurationError


def _secret_from_file(data: bytes) -> bytes:
    """Accept a JSON byte array, a JSON object with "secretKey", or 64 raw bytes."""
    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        parsed = None

    if isinstance(parsed, dict):
        parsed = parsed.get("secretKey")
    if isinstance(parsed, list):
        try:
            return bytes(parsed)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Keypair JSON is not a byte array: {e}") from e
    if len(data) == 64:
        return data
    raise ConfigurationError("Unrecognized keypair format (expected JSON array, "
                             "{\"secretKey\": [...]} or 64 raw bytes)")


class Wallet:
    """Holds the signing key. Venues only see the public key and signatures."""

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @property
    def public_key(self) -> str:
        return str(self._keypair.pubkey())

    def sign_message(self, message: bytes) -> str:
        """Sign raw bytes and return the base58 signature."""
        return str(self._keypair.sign_message(message))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Wallet":
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigurationError(f"Keypair file not found: {path}")

        if os.name == "posix" and path.stat().st_mode & 0o077:
            logger.warning(f"⚠️ Keypair file {path} is accessible by group/others, "
                           f"consider chmod 600")

        secret = _secret_from_file(path.read_bytes())
        try:
            keypair = Keypair.from_bytes(secret)
        except ValueError as e:
            raise ConfigurationError(f"Invalid keypair in {path}: {e}") from e

        wallet = cls(keypair)
        logger.info(f"Loaded wallet {wallet.public_key}")
        return wallet

    @classmethod
    def ephemeral(cls) -> "Wallet":
        """Random throwaway keypair for simulation runs."""
        return cls(Keypair())

    @classmethod
    def from_config(cls, config: Config) -> "Wallet":
        if config.wallet.keypair_path:
            return cls.from_file(config.wallet.keypair_path)
        if config.safety.simulation_mode:
            wallet = cls.ephemeral()
            logger.warning(f"No keypair configured, using ephemeral wallet {wallet.public_key} "
                           f"for simulation")
            return wallet
        raise ConfigurationError("wallet.keypair_path is required outside simulation mode")

    def __repr__(self) -> str:
        return f"Wallet({self.public_key})"
