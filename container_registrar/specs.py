"""
Convert a raw chain spec into the ContainerChainGenesisData accepted by the
container registrar.

The chain spec must be the raw form (`genesis.raw.top`). Storage entries are
copied in document order; `name`, `id`, `forkId` and `tokenSymbol` are sent on
chain as UTF-8 bytes, so they are hex encoded here.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
)

from .errors import ArgumentError, MalformedInput

logger = logging.getLogger(__name__)

EMPTY_EXTENSIONS = "0x"


def string_to_hex(text: str) -> str:
    return "0x" + text.encode("utf-8").hex()


class _Document(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RawGenesis(_Document):
    top: Dict[StrictStr, StrictStr]


class Genesis(_Document):
    raw: RawGenesis


class ChainSpecProperties(_Document):
    token_symbol: StrictStr = Field(alias="tokenSymbol")
    ss58_format: StrictInt = Field(alias="ss58Format")
    token_decimals: StrictInt = Field(alias="tokenDecimals")
    is_ethereum: Optional[StrictBool] = Field(default=None, alias="isEthereum")


class ChainSpec(_Document):
    name: StrictStr
    id: StrictStr
    fork_id: Optional[StrictStr] = Field(default=None, alias="forkId")
    genesis: Genesis
    properties: ChainSpecProperties


class _GenesisValue(BaseModel):
    # model_dump() gives the snake_case call params, model_dump(by_alias=True)
    # the camelCase JSON document
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class StorageItem(_GenesisValue):
    key: str
    value: str


class TokenMetadata(_GenesisValue):
    token_symbol: str = Field(alias="tokenSymbol")
    ss58_format: int = Field(alias="ss58Format")
    token_decimals: int = Field(alias="tokenDecimals")


class GenesisProperties(_GenesisValue):
    token_metadata: TokenMetadata = Field(alias="tokenMetadata")
    is_ethereum: bool = Field(default=False, alias="isEthereum")


class ContainerChainGenesisData(_GenesisValue):
    storage: List[StorageItem]
    name: str
    id: str
    fork_id: Optional[str] = Field(alias="forkId")
    extensions: str = EMPTY_EXTENSIONS
    properties: GenesisProperties

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_call_params(self) -> dict:
        return self.model_dump()


def chain_spec_to_genesis_data(document) -> ContainerChainGenesisData:
    """
    Build ContainerChainGenesisData from a parsed raw chain spec.

    Raises MalformedInput if the document lacks `genesis.raw.top` or the
    required properties, or if `ss58Format` / `tokenDecimals` are not integers.
    """
    try:
        spec = ChainSpec.model_validate(document)
    except ValidationError as e:
        raise MalformedInput(f"Malformed chain spec: {e}") from e

    storage = [
        StorageItem(key=key, value=value) for key, value in spec.genesis.raw.top.items()
    ]
    properties = spec.properties

    return ContainerChainGenesisData(
        storage=storage,
        name=string_to_hex(spec.name),
        id=string_to_hex(spec.id),
        fork_id=string_to_hex(spec.fork_id) if spec.fork_id is not None else None,
        extensions=EMPTY_EXTENSIONS,
        properties=GenesisProperties(
            token_metadata=TokenMetadata(
                token_symbol=string_to_hex(properties.token_symbol),
                ss58_format=properties.ss58_format,
                token_decimals=properties.token_decimals,
            ),
            is_ethereum=bool(properties.is_ethereum),
        ),
    )


def load_chain_spec(path):
    p = Path(path)
    if not p.is_file():
        raise ArgumentError(f"Chain spec not found: {path}")

    logger.info("Reading chain spec: %s", p.resolve())
    with p.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"Chain spec {path} is not valid JSON: {e}") from e
