"""
Shared fixtures: deterministic keys, an in-memory client and signers bound to it.
"""

import pytest

from ckb_client.signers import SignerBtcPrivateKey, SignerCkbPrivateKey, SignerEvmPrivateKey

from helpers.mocks import PRIVATE_KEY, MockClient


@pytest.fixture
def client():
    """Empty testnet MockClient."""
    return MockClient()


@pytest.fixture
def ckb_signer(client):
    return SignerCkbPrivateKey(client, PRIVATE_KEY)


@pytest.fixture
def btc_signer(client):
    return SignerBtcPrivateKey(client, PRIVATE_KEY)


@pytest.fixture
def evm_signer(client):
    return SignerEvmPrivateKey(client, PRIVATE_KEY)
