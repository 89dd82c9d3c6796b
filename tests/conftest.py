"""
Shared fixtures.

FakeSession stands in for SubstrateSession: status updates, events, headers
and storage are scripted per test, and every close() is counted.
"""

import pytest

from container_registrar.account import Account
from container_registrar.chain import (
    BlockHeader,
    Event,
    GenericError,
    ModuleError,
    StatusUpdate,
    TransactionStatus,
)
from container_registrar.config import Settings
from container_registrar.errors import BlockNotFound, ChainConnectionError
from container_registrar.networks import NETWORKS

ALICE = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
BOB = "5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty"
MNEMONIC = "bottom drive obey lake curtain smoke basket hold race lonely fit walk"

FINALIZED_HASH = "0x" + "ab" * 32
IN_BLOCK_HASH = "0x" + "cd" * 32

FLASHBOX = NETWORKS["flashbox"]
DANCELIGHT = NETWORKS["dancelight"]


def finalized_updates(events=None, block_hash=FINALIZED_HASH):
    return [
        StatusUpdate(TransactionStatus.READY),
        StatusUpdate(TransactionStatus.IN_BLOCK, block_hash=IN_BLOCK_HASH, events=events),
        StatusUpdate(TransactionStatus.FINALIZED, block_hash=block_hash, events=events),
    ]


class FakeSession:
    def __init__(self, endpoint):
        self.endpoint = endpoint
        self.updates = []
        self.events = {}
        self.headers = {}
        self.storage = {}
        self.header_error = None
        self.submitted = []
        self.close_calls = 0
        self.closed = False

    def close(self):
        self.close_calls += 1
        self.closed = True

    def submit(self, call, account):
        self.submitted.append((call, account))
        return iter(self.updates)

    def query_events_at(self, block_hash):
        return list(self.events.get(block_hash, []))

    def get_header(self, block_hash=None):
        if self.header_error is not None:
            raise self.header_error
        if block_hash is None:
            return max(self.headers.values(), key=lambda h: h.number)
        if block_hash not in self.headers:
            raise BlockNotFound(block_hash)
        return self.headers[block_hash]

    def decode_dispatch_error(self, raw):
        if isinstance(raw, dict) and "Module" in raw:
            return ModuleError("registrar", "ParaIdAlreadyRegistered", "The ParaId is already registered.")
        return GenericError(str(raw))

    def query(self, pallet, storage, params=None):
        return self.storage.get((pallet, storage, tuple(params or ())))


class FakeConnector:
    """Hands out one FakeSession per endpoint and records every connect."""

    def __init__(self, fail_on=None):
        self.sessions = {}
        self.opened = []
        self.fail_on = fail_on

    def session(self, endpoint):
        return self.sessions.setdefault(endpoint, FakeSession(endpoint))

    def __call__(self, endpoint, settings):
        if endpoint == self.fail_on:
            raise ChainConnectionError(f"Could not connect to {endpoint}")
        session = self.session(endpoint)
        self.opened.append(session)
        return session


def fake_account_loader(mnemonic, ss58_format=42):
    return Account(address=ALICE)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ("NETWORK", "ACCOUNT_MNEMONIC", "RPC_TIMEOUT", "SS58_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def flashbox_settings():
    return Settings(network="flashbox", account_mnemonic=MNEMONIC)


@pytest.fixture
def dancelight_settings():
    return Settings(network="dancelight", account_mnemonic=MNEMONIC)


def reserved_event(para_id, who):
    return Event("registrar", "Reserved", (para_id, who), ("para_id", "who"), "ApplyExtrinsic(1)")


def header(block_hash, number, parent="0x" + "00" * 32):
    return BlockHeader(hash=block_hash, number=number, parent_hash=parent)
