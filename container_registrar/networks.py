"""
Named network presets.

flashbox is the stagenet pair: a Tanssi orchestrator plus its own relay
chain. ParaIds are reserved and plain registrations happen on the relay,
which is why it is the only preset with a secondary endpoint.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import UnknownNetwork
from .registrar import (
    CONTAINER_REGISTRAR,
    PARAS_REGISTRAR,
    TANSSI_REGISTRAR,
    RegistrarPallet,
)

DEFAULT_NETWORK = "dancelight"


@dataclass(frozen=True)
class NetworkConfig:
    primary_endpoint: str
    secondary_endpoint: Optional[str] = None
    # pallet for reserve() and the genesis-data / genesis-state register()
    registrar: RegistrarPallet = PARAS_REGISTRAR
    # pallet for register() with ContainerChainGenesisData built from a chain spec
    spec_registrar: RegistrarPallet = CONTAINER_REGISTRAR


NETWORKS = {
    "flashbox": NetworkConfig(
        primary_endpoint="wss://fraa-flashbox-rpc.a.stagenet.tanssi.network",
        secondary_endpoint="wss://fraa-flashbox-relay-rpc.a.stagenet.tanssi.network",
        spec_registrar=TANSSI_REGISTRAR,
    ),
    "dancelight": NetworkConfig(
        primary_endpoint="wss://services.tanssi-testnet.network/dancelight",
    ),
    "mainnet": NetworkConfig(
        primary_endpoint="wss://services.tanssi-mainnet.network/tanssi",
    ),
}


def resolve_network(name: str) -> NetworkConfig:
    """
    Look up a network preset by name, ignoring case.

    Raises UnknownNetwork, listing every preset, when there is no match.
    """
    config = NETWORKS.get(name.lower())
    if config is None:
        raise UnknownNetwork(name, NETWORKS.keys())
    return config


def get_active_network(settings):
    """Return `(name, config)` for the NETWORK setting."""
    name = (settings.network or DEFAULT_NETWORK).lower()
    return name, resolve_network(name)


def select_target_session(network_name, primary, secondary=None):
    """
    Pick the session that reserve/register calls are submitted to.

    Networks with a secondary endpoint submit there when it is connected;
    everything else goes to the primary session.
    """
    config = NETWORKS.get(network_name.lower())
    if config is not None and config.secondary_endpoint and secondary is not None:
        return secondary
    return primary
