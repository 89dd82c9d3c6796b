"""
Registrar pallet calls.

Relay chains expose the paras `registrar` pallet, while Tanssi-style
orchestrators expose a container registrar. Both offer `reserve` and
`register`, but the `register` parameters are named differently, so each
flavour is described by a RegistrarPallet.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

REGISTERED_EVENT_METHODS = ("Registered", "ParaIdRegistered")
REGISTERED_EVENT_SECTIONS = ("registrar", "containerRegistrar")


@dataclass(frozen=True)
class Call:
    """A pallet call; `pallet` uses the lower-camel section name."""

    pallet: str
    function: str
    params: Dict[str, Any] = field(default_factory=dict)

    def __str__(self):
        return f"{self.pallet}.{self.function}"


@dataclass(frozen=True)
class RegistrarPallet:
    name: str
    para_id_param: str
    genesis_param: str
    code_param: str

    def reserve_call(self) -> Call:
        return Call(self.name, "reserve")

    def register_call(self, para_id: int, genesis: Any, code: Optional[str]) -> Call:
        # `code` is the hex wasm blob, or None for the pallets that take
        # optional head data instead
        return Call(
            self.name,
            "register",
            {
                self.para_id_param: para_id,
                self.genesis_param: genesis,
                self.code_param: code,
            },
        )


PARAS_REGISTRAR = RegistrarPallet(
    name="registrar",
    para_id_param="id",
    genesis_param="genesis_head",
    code_param="validation_code",
)


def container_registrar(name):
    return RegistrarPallet(
        name=name,
        para_id_param="para_id",
        genesis_param="genesis_data",
        code_param="head_data",
    )


CONTAINER_REGISTRAR = container_registrar("containerRegistrar")
TANSSI_REGISTRAR = container_registrar("registrar")


def is_registered_event(event) -> bool:
    return (
        event.section in REGISTERED_EVENT_SECTIONS
        and event.method in REGISTERED_EVENT_METHODS
    )
