"""Tests for keypair loading and signing."""

import json
import pytest
from solders.keypair import Keypair

from dexarb.config import Config
from dexarb.errors import ConfigurationError
from dexarb.wallet import Wallet


class TestWalletLoading:
    """Keypair file formats."""

    def setup_method(self):
        self.keypair = Keypair()
        self.secret = list(bytes(self.keypair))

    def test_json_array(self, tmp_path):
        path = tmp_path / "id.json"
        path.write_text(json.dumps(self.secret))
        path.chmod(0o600)

        wallet = Wallet.from_file(path)

        assert wallet.public_key == str(self.keypair.pubkey())

    def test_secret_key_object(self, tmp_path):
        path = tmp_path / "id.json"
        path.write_text(json.dumps({"secretKey": self.secret}))

        assert Wallet.from_file(path).public_key == str(self.keypair.pubkey())

    def test_raw_bytes(self, tmp_path):
        path = tmp_path / "id.bin"
        path.write_bytes(bytes(self.keypair))

        assert Wallet.from_file(path).public_key == str(self.keypair.pubkey())

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Wallet.from_file(tmp_path / "missing.json")

    def test_unrecognized_format(self, tmp_path):
        path = tmp_path / "id.json"
        path.write_text('{"publicKey": "abc"}')
        with pytest.raises(ConfigurationError):
            Wallet.from_file(path)

    def test_signs_messages(self):
        wallet = Wallet(self.keypair)
        message = b'{"amount":"1"}'
        assert wallet.sign_message(message) == str(self.keypair.sign_message(message))


class TestWalletFromConfig:
    """Config-driven wallet selection."""

    def test_ephemeral_in_simulation(self):
        wallet = Wallet.from_config(Config())
        assert wallet.public_key

    def test_configured_path(self, tmp_path):
        keypair = Keypair()
        path = tmp_path / "id.json"
        path.write_text(json.dumps(list(bytes(keypair))))

        config = Config(safety={"simulation_mode": False}, wallet={"keypair_path": str(path)})

        assert Wallet.from_config(config).public_key == str(keypair.pubkey())
