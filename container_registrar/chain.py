"""
Sessions with Substrate nodes.

SubstrateSession is the only place that talks to substrate-interface. The
workflows use nothing but the methods below, so tests can stand in any object
with the same surface:

    query_events_at(block_hash) -> list of Event
    get_header(block_hash=None) -> BlockHeader
    submit(call, account)       -> iterator of StatusUpdate
    decode_dispatch_error(raw)  -> ModuleError | GenericError
    query(pallet, storage, params=None) -> decoded storage value
    close()
"""

import enum
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from substrateinterface import ExtrinsicReceipt, SubstrateInterface
from substrateinterface.exceptions import SubstrateRequestException
from websocket import WebSocketException

from .errors import BlockNotFound, ChainConnectionError
from .networks import get_active_network

logger = logging.getLogger(__name__)

HEADER_NOT_FOUND_MESSAGES = ("unable to retrieve header", "header not found")


class TransactionStatus(enum.Enum):
    FUTURE = "future"
    READY = "ready"
    BROADCAST = "broadcast"
    IN_BLOCK = "inBlock"
    RETRACTED = "retracted"
    FINALITY_TIMEOUT = "finalityTimeout"
    FINALIZED = "finalized"
    USURPED = "usurped"
    DROPPED = "dropped"
    INVALID = "invalid"

    @classmethod
    def parse(cls, name):
        for status in cls:
            if status.value.lower() == name.lower():
                return status
        raise ChainConnectionError(f"Unexpected transaction status: {name}")


TERMINAL_STATUSES = frozenset(
    {
        TransactionStatus.FINALIZED,
        TransactionStatus.FINALITY_TIMEOUT,
        TransactionStatus.USURPED,
        TransactionStatus.DROPPED,
        TransactionStatus.INVALID,
    }
)


@dataclass(frozen=True)
class Event:
    section: str
    method: str
    data: Tuple[Any, ...] = ()
    names: Tuple[str, ...] = ()
    phase: str = ""

    def matches(self, section, method) -> bool:
        return self.section == section and self.method == method

    def __str__(self):
        return f"{self.section}.{self.method}"


@dataclass(frozen=True)
class StatusUpdate:
    status: TransactionStatus
    block_hash: Optional[str] = None
    # only set on inBlock / finalized updates
    events: Optional[List[Event]] = None
    dispatch_error: Any = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES or self.dispatch_error is not None


@dataclass(frozen=True)
class BlockHeader:
    hash: str
    number: int
    parent_hash: str


@dataclass(frozen=True)
class ModuleError:
    section: str
    name: str
    docs: str

    def __str__(self):
        return f"{self.section}.{self.name}: {self.docs}"


@dataclass(frozen=True)
class GenericError:
    message: str

    def __str__(self):
        return self.message


def section_name(module_id: str) -> str:
    """`ContainerRegistrar` -> `containerRegistrar`, matching how events are named."""
    return module_id[:1].lower() + module_id[1:]


def module_name(section: str) -> str:
    return section[:1].upper() + section[1:]


def event_from_record(record) -> Event:
    value = record.value if hasattr(record, "value") else record
    event = value.get("event") or value

    attributes = event.get("attributes")
    if isinstance(attributes, dict):
        names, data = tuple(attributes.keys()), tuple(attributes.values())
    elif isinstance(attributes, (list, tuple)):
        names, data = (), tuple(attributes)
    elif attributes is None:
        names, data = (), ()
    else:
        names, data = (), (attributes,)

    return Event(
        section=section_name(event["module_id"]),
        method=event["event_id"],
        data=data,
        names=names,
        phase=str(value.get("phase", "")),
    )


def _header_missing(error) -> bool:
    message = str(error).lower()
    return any(m in message for m in HEADER_NOT_FOUND_MESSAGES)


class SubstrateSession:
    def __init__(self, endpoint, substrate):
        self.endpoint = endpoint
        self._substrate = substrate
        self.closed = False

    def __repr__(self):
        return f"<SubstrateSession {self.endpoint}>"

    def close(self):
        if not self.closed:
            self.closed = True
            self._substrate.close()

    def query(self, pallet, storage, params=None):
        return self._substrate.query(pallet, storage, params=params or []).value

    def get_header(self, block_hash=None) -> BlockHeader:
        try:
            response = self._substrate.rpc_request("chain_getHeader", [block_hash])
        except SubstrateRequestException as e:
            if block_hash is not None and _header_missing(e):
                raise BlockNotFound(block_hash) from e
            raise

        header = response.get("result")
        if header is None:
            raise BlockNotFound(block_hash)

        if block_hash is None:
            block_hash = self._substrate.get_block_hash(int(header["number"], 16))
        return BlockHeader(
            hash=block_hash,
            number=int(header["number"], 16),
            parent_hash=header["parentHash"],
        )

    def query_events_at(self, block_hash) -> List[Event]:
        return [event_from_record(r) for r in self._substrate.get_events(block_hash=block_hash)]

    def submit(self, call, account):
        """
        Sign `call` with `account`, submit it and watch it until a terminal
        status. Returns the status updates in the order the node sent them.
        """
        extrinsic = self._substrate.create_signed_extrinsic(
            call=self._compose(call), keypair=account.keypair
        )
        extrinsic_hash = "0x" + extrinsic.extrinsic_hash.hex()
        logger.debug("Submitting %s as %s", call, extrinsic_hash)
        updates = []

        def result_handler(message, update_nr, subscription_id):
            result = message.get("params", {}).get("result")
            if result is None:
                return None

            update = self._status_update(result, extrinsic_hash)
            updates.append(update)
            if update.is_terminal:
                self._substrate.rpc_request("author_unwatchExtrinsic", [subscription_id])
                return update
            return None

        try:
            self._substrate.rpc_request(
                "author_submitAndWatchExtrinsic",
                [str(extrinsic.data)],
                result_handler=result_handler,
            )
        except (WebSocketException, ConnectionError) as e:
            raise ChainConnectionError(f"Lost connection to {self.endpoint}: {e}") from e

        return iter(updates)

    def decode_dispatch_error(self, raw):
        if isinstance(raw, dict) and "Module" in raw:
            module = raw["Module"]
            module_index = module["index"]
            error_index = module["error"]
            if isinstance(error_index, str):
                error_index = bytes.fromhex(error_index[2:])[0]

            section = str(module_index)
            for pallet in self._substrate.metadata.pallets:
                if pallet.value["index"] == module_index:
                    section = section_name(pallet.value["name"])
                    break

            error = self._substrate.metadata.get_module_error(
                module_index=module_index, error_index=error_index
            )
            docs = error.docs if error is not None else []
            name = error.name if error is not None else f"Error{error_index}"
            return ModuleError(section=section, name=name, docs=" ".join(docs))

        if isinstance(raw, dict):
            return GenericError(", ".join(f"{k}: {v}" for k, v in raw.items()))
        return GenericError(str(raw))

    def _compose(self, call):
        return self._substrate.compose_call(
            call_module=module_name(call.pallet),
            call_function=call.function,
            call_params=call.params,
        )

    def _status_update(self, result, extrinsic_hash) -> StatusUpdate:
        if isinstance(result, str):
            return StatusUpdate(TransactionStatus.parse(result))

        name, detail = next(iter(result.items()))
        status = TransactionStatus.parse(name)
        if status not in (TransactionStatus.IN_BLOCK, TransactionStatus.FINALIZED):
            return StatusUpdate(status)

        receipt = ExtrinsicReceipt(
            substrate=self._substrate, extrinsic_hash=extrinsic_hash, block_hash=detail
        )
        events = [event_from_record(r) for r in receipt.triggered_events]
        dispatch_error = None
        for event in events:
            if event.matches("system", "ExtrinsicFailed"):
                dispatch_error = event.data[0] if event.data else event.method
        return StatusUpdate(status, block_hash=detail, events=events, dispatch_error=dispatch_error)


def connect(endpoint, settings) -> SubstrateSession:
    """Open a websocket session and wait until the runtime metadata is loaded."""
    logger.info("Connecting to %s...", endpoint)
    try:
        substrate = SubstrateInterface(
            url=endpoint,
            ss58_format=settings.ss58_format,
            ws_options={"timeout": settings.rpc_timeout},
        )
        substrate.init_runtime()
        logger.info("Connected to %s (%s)", substrate.chain, substrate.version)
    except (WebSocketException, ConnectionError, OSError) as e:
        raise ChainConnectionError(f"Could not connect to {endpoint}: {e}") from e

    return SubstrateSession(endpoint, substrate)


def disconnect(session):
    if session is None or session.closed:
        return
    try:
        session.close()
    except (WebSocketException, OSError) as e:
        logger.warning("Error while disconnecting from %s: %s", session.endpoint, e)
    else:
        logger.info("Disconnected from %s", session.endpoint)


@dataclass
class ActiveConnection:
    network: str
    config: Any
    primary: Any
    secondary: Any = None


@contextmanager
def connect_active(settings, connector=connect):
    """
    Connect to the NETWORK preset, opening the secondary endpoint only when the
    preset has one. Every session opened here is closed on the way out.
    """
    name, config = get_active_network(settings)
    logger.info("=== Connecting to %s network ===", name.upper())

    primary = secondary = None
    try:
        primary = connector(config.primary_endpoint, settings)
        if config.secondary_endpoint:
            secondary = connector(config.secondary_endpoint, settings)
        yield ActiveConnection(name, config, primary, secondary)
    finally:
        disconnect(secondary)
        disconnect(primary)
