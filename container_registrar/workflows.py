"""
Reserve and register workflows.

Each workflow reads its local inputs first, then connects to the active
network, picks the session to submit to, loads the signing account, submits
one registrar call and checks the finalized block for the event that confirms
it. Sessions are released by connect_active whatever happens.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .account import BalanceInfo, get_balance, has_mnemonic, load_account, require_mnemonic
from .chain import (
    BlockHeader,
    Event,
    GenericError,
    TransactionStatus,
    connect,
    connect_active,
)
from .config import get_settings
from .errors import (
    ArgumentError,
    BlockNotFound,
    ChainConnectionError,
    DispatchError,
    EventNotFound,
)
from .networks import select_target_session
from .registrar import is_registered_event
from .specs import chain_spec_to_genesis_data, load_chain_spec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalizedTransaction:
    block_hash: str
    events: List[Event]


@dataclass(frozen=True)
class ReservationResult:
    para_id: int
    owner: str
    network: str
    block_hash: str


@dataclass(frozen=True)
class RegistrationResult:
    para_id: int
    network: str
    block_hash: str
    event: Event
    events: List[Event] = field(default_factory=list)


@dataclass(frozen=True)
class BlockEventsReport:
    block_hash: str
    found: bool
    header: Optional[BlockHeader] = None
    total_events: int = 0
    reserved: List[Event] = field(default_factory=list)


@dataclass(frozen=True)
class StatusReport:
    network: str
    block_number: int
    parachains: List[int]
    lifecycle: Optional[str] = None
    balance: Optional[BalanceInfo] = None


def read_file_as_hex(path) -> str:
    p = Path(path)
    if not p.is_file():
        raise ArgumentError(f"File not found: {path}")

    logger.info("Reading file: %s", p.resolve())
    data = p.read_bytes()
    logger.info("File size: %d bytes", len(data))
    return "0x" + data.hex()


def read_genesis_data(path) -> str:
    p = Path(path)
    if not p.is_file():
        raise ArgumentError(f"File not found: {path}")

    logger.info("Reading file: %s", p.resolve())
    return p.read_text(encoding="utf-8").strip()


def filter_reserved_events(events, account=None) -> List[Event]:
    """`registrar.Reserved` events, optionally only those owned by `account`."""
    reserved = [e for e in events if e.matches("registrar", "Reserved")]
    if account is not None:
        reserved = [e for e in reserved if len(e.data) > 1 and str(e.data[1]) == account]
    return reserved


def submit_and_watch(session, call, account) -> FinalizedTransaction:
    """
    Submit `call` and follow its status updates until it is finalized.

    Dispatch errors are decoded through the session and raised as
    DispatchError; so are the other terminal statuses.
    """
    logger.info("Submitting %s...", call)

    for update in session.submit(call, account):
        logger.info("Transaction status: %s", update.status.value)

        if update.dispatch_error is not None:
            raise DispatchError(session.decode_dispatch_error(update.dispatch_error))

        if update.status is TransactionStatus.IN_BLOCK:
            logger.info("Transaction included in block: %s", update.block_hash)
        elif update.status is TransactionStatus.FINALIZED:
            logger.info("Transaction finalized: %s", update.block_hash)
            events = update.events
            if events is None:
                events = session.query_events_at(update.block_hash)
            return FinalizedTransaction(update.block_hash, list(events))
        elif update.is_terminal:
            raise DispatchError(GenericError(f"Transaction {update.status.value}"))

    raise ChainConnectionError("Status subscription ended before the transaction was finalized")


def _load_signer(settings, account_loader):
    signer = account_loader(require_mnemonic(settings), settings.ss58_format)
    print(f"Using account: {signer.address}")
    return signer


def reserve_para_id(settings=None, account=None, connector=connect, account_loader=load_account):
    """
    Reserve the next free ParaId.

    The finalized block's events are searched for `registrar.Reserved` owned by
    `account`, or by the signing account when no address is given.
    """
    settings = settings or get_settings()

    with connect_active(settings, connector) as conn:
        session = select_target_session(conn.network, conn.primary, conn.secondary)
        logger.info("Reserving on %s", session.endpoint)

        signer = _load_signer(settings, account_loader)
        tx = submit_and_watch(session, conn.config.registrar.reserve_call(), signer)

        owner = account or signer.address
        reserved = filter_reserved_events(session.query_events_at(tx.block_hash), owner)
        if not reserved:
            raise EventNotFound(
                f"No registrar.Reserved event found for {owner} in block {tx.block_hash}"
            )

        para_id = int(reserved[0].data[0])
        print("\n=== SUCCESS ===")
        print(f"Your reserved ParaId: {para_id}")
        print(f"Network: {conn.network}")
        print(f"Block Hash: {tx.block_hash}")

        return ReservationResult(para_id, owner, conn.network, tx.block_hash)


def _submit_registration(session, call, signer, para_id, network) -> RegistrationResult:
    tx = submit_and_watch(session, call, signer)

    print("Events:")
    for event in tx.events:
        print(f"  {event}")

    registered = next((e for e in tx.events if is_registered_event(e)), None)
    if registered is None:
        raise EventNotFound(
            f"No registration event for ParaId {para_id} in block {tx.block_hash}"
        )

    print("\n=== SUCCESS ===")
    print(f"ParaId {para_id} registered on {network} ({registered})")
    print(f"Block Hash: {tx.block_hash}")
    return RegistrationResult(para_id, network, tx.block_hash, registered, tx.events)


def register_parachain(
    para_id, genesis_data_path, genesis_wasm_path,
    settings=None, connector=connect, account_loader=load_account,
):
    """Register with a genesis-data file (hex text) and a runtime wasm file."""
    settings = settings or get_settings()
    print("\n=== Parachain Registration ===")
    print(f"ParaId: {para_id}")

    genesis_data = read_genesis_data(genesis_data_path)
    genesis_wasm = read_file_as_hex(genesis_wasm_path)

    with connect_active(settings, connector) as conn:
        session = select_target_session(conn.network, conn.primary, conn.secondary)
        pallet = conn.config.registrar
        logger.info("Using %s.register on %s", pallet.name, session.endpoint)

        signer = _load_signer(settings, account_loader)
        call = pallet.register_call(para_id, genesis_data, genesis_wasm)
        return _submit_registration(session, call, signer, para_id, conn.network)


def register_chain(
    para_id, genesis_state_path, genesis_wasm_path,
    settings=None, connector=connect, account_loader=load_account,
):
    """Register with a binary genesis-state file and a runtime wasm file."""
    settings = settings or get_settings()
    print("\n=== Chain Registration ===")
    print(f"ParaId: {para_id}")

    genesis_state = read_file_as_hex(genesis_state_path)
    genesis_wasm = read_file_as_hex(genesis_wasm_path)

    with connect_active(settings, connector) as conn:
        session = select_target_session(conn.network, conn.primary, conn.secondary)
        pallet = conn.config.registrar
        logger.info("Using %s.register on %s", pallet.name, session.endpoint)

        signer = _load_signer(settings, account_loader)
        call = pallet.register_call(para_id, genesis_state, genesis_wasm)
        return _submit_registration(session, call, signer, para_id, conn.network)


def register_with_spec(
    para_id, chain_spec_path,
    settings=None, connector=connect, account_loader=load_account,
):
    """
    Register a container chain from its raw chain spec.

    The chain spec is converted to ContainerChainGenesisData before connecting,
    so a malformed document never reaches the network. Submitted on the primary
    endpoint with the network's `spec_registrar` pallet and no head data.
    """
    settings = settings or get_settings()
    print("\n=== Parachain Registration with Chain Spec ===")
    print(f"ParaId: {para_id}")

    genesis_data = chain_spec_to_genesis_data(load_chain_spec(chain_spec_path))
    logger.info("Converted chain spec with %d storage entries", len(genesis_data.storage))

    with connect_active(settings, connector) as conn:
        session = conn.primary
        pallet = conn.config.spec_registrar
        logger.info("Using %s.register on %s", pallet.name, session.endpoint)

        signer = _load_signer(settings, account_loader)
        call = pallet.register_call(para_id, genesis_data.to_call_params(), None)
        return _submit_registration(session, call, signer, para_id, conn.network)


def _print_event(index, event):
    print(f"{index}. {event}")
    print(f"   Phase: {event.phase}")
    if event.data:
        print("   Data:")
        for i, value in enumerate(event.data):
            label = event.names[i] if i < len(event.names) else f"param{i}"
            print(f"     {label}: {value}")
        print(f"\n   Reserved ParaId (param0): {event.data[0]}")
    print("")


def get_block_events(block_hash, account=None, settings=None, connector=connect):
    """
    List the `registrar.Reserved` events of one block.

    A block the node does not know is reported, not raised: the returned
    report has `found=False`.
    """
    settings = settings or get_settings()
    print("\n=== Block Events ===")
    print(f"Block Hash: {block_hash}")
    if account:
        print(f"Filter by Account: {account}")

    with connect_active(settings, connector) as conn:
        session = select_target_session(conn.network, conn.primary, conn.secondary)
        logger.info("Querying %s", session.endpoint)

        try:
            header = session.get_header(block_hash)
        except BlockNotFound:
            print(f"\nBlock not found on {session.endpoint}")
            return BlockEventsReport(block_hash, found=False)

        events = session.query_events_at(block_hash)
        reserved = filter_reserved_events(events, account)

        print(f"Block Number: #{header.number}")
        print(f"Parent Hash: {header.parent_hash}")
        print(f"\nTotal Events: {len(events)}")
        print(f"registrar.Reserved Events: {len(reserved)}\n")

        if not reserved:
            suffix = f" for account {account}" if account else ""
            print(f"No registrar.Reserved events found{suffix} in this block.")
        for index, event in enumerate(reserved, start=1):
            _print_event(index, event)

        return BlockEventsReport(block_hash, True, header, len(events), reserved)


def check_status(
    para_id=None, account=None,
    settings=None, connector=connect, account_loader=load_account,
):
    """Registered parachains, current block and optionally one ParaId and a balance."""
    settings = settings or get_settings()

    with connect_active(settings, connector) as conn:
        session = select_target_session(conn.network, conn.primary, conn.secondary)
        print("\n=== Checking Registration Status ===")
        print(f"Network: {conn.network}\n")

        parachains = list(session.query("Paras", "Parachains") or [])
        print(f"Registered Parachains: {parachains}")

        lifecycle = None
        if para_id is not None:
            lifecycle = session.query("Paras", "ParaLifecycles", [para_id])
            if lifecycle is None:
                print(f"\nParachain {para_id} is not registered")
            else:
                print(f"\nParachain {para_id} lifecycle: {lifecycle}")

        if account is None and has_mnemonic(settings):
            account = account_loader(require_mnemonic(settings), settings.ss58_format).address

        balance = None
        if account is not None:
            balance = get_balance(session, account)
            print(f"\nBalance of {account}:")
            print(f"  free: {balance.free}")
            print(f"  reserved: {balance.reserved}")
            print(f"  frozen: {balance.frozen}")

        header = session.get_header()
        print(f"\nCurrent block: #{header.number}")

        return StatusReport(conn.network, header.number, parachains, lifecycle, balance)
