"""Tests for the chain spec to ContainerChainGenesisData conversion."""

import json

import pytest

from container_registrar.errors import ArgumentError, MalformedInput
from container_registrar.specs import (
    chain_spec_to_genesis_data,
    load_chain_spec,
    string_to_hex,
)


def make_spec(**overrides):
    spec = {
        "name": "test",
        "id": "test-id",
        "genesis": {"raw": {"top": {"0x01": "0xAA"}, "childrenDefault": {}}},
        "properties": {"tokenSymbol": "TEST", "ss58Format": 42, "tokenDecimals": 18},
        "bootNodes": [],
        "chainType": "Live",
    }
    spec.update(overrides)
    return spec


def decode_hex(value):
    return bytes.fromhex(value[2:]).decode("utf-8")


def test_example_document_converts_to_expected_genesis_data() -> None:
    genesis = chain_spec_to_genesis_data(make_spec())

    assert genesis.to_json() == {
        "storage": [{"key": "0x01", "value": "0xAA"}],
        "name": "0x74657374",
        "id": "0x746573742d6964",
        "forkId": None,
        "extensions": "0x",
        "properties": {
            "tokenMetadata": {
                "tokenSymbol": "0x54455354",
                "ss58Format": 42,
                "tokenDecimals": 18,
            },
            "isEthereum": False,
        },
    }


def test_call_params_use_snake_case_field_names() -> None:
    params = chain_spec_to_genesis_data(make_spec(forkId="fork")).to_call_params()

    assert params["fork_id"] == string_to_hex("fork")
    assert params["properties"]["token_metadata"]["token_symbol"] == string_to_hex("TEST")
    assert params["properties"]["is_ethereum"] is False
    assert params["storage"] == [{"key": "0x01", "value": "0xAA"}]


def test_name_and_id_round_trip_through_hex() -> None:
    genesis = chain_spec_to_genesis_data(make_spec(name="Frontier Template ⚡", id="frontier_dev"))

    assert decode_hex(genesis.name) == "Frontier Template ⚡"
    assert decode_hex(genesis.id) == "frontier_dev"


def test_storage_keeps_document_order_and_values() -> None:
    top = {"0xff": "0x01", "0x00": "0x", "0x0a": "0xDEADbeef", "0x05": "0x00"}
    genesis = chain_spec_to_genesis_data(make_spec(genesis={"raw": {"top": top}}))

    assert [(item.key, item.value) for item in genesis.storage] == list(top.items())


def test_absent_fork_id_is_null_and_empty_fork_id_is_encoded() -> None:
    absent = chain_spec_to_genesis_data(make_spec())
    empty = chain_spec_to_genesis_data(make_spec(forkId=""))
    present = chain_spec_to_genesis_data(make_spec(forkId="fork-1"))

    assert absent.fork_id is None
    assert empty.fork_id == "0x"
    assert present.fork_id == string_to_hex("fork-1")


@pytest.mark.parametrize("is_ethereum, expected", [(None, False), (False, False), (True, True)])
def test_is_ethereum(is_ethereum, expected) -> None:
    properties = {"tokenSymbol": "UNIT", "ss58Format": 42, "tokenDecimals": 12}
    if is_ethereum is not None:
        properties["isEthereum"] = is_ethereum

    genesis = chain_spec_to_genesis_data(make_spec(properties=properties))

    assert genesis.properties.is_ethereum is expected


def test_extensions_ignore_input() -> None:
    genesis = chain_spec_to_genesis_data(make_spec(extensions={"relay_chain": "rococo"}))
    assert genesis.extensions == "0x"


@pytest.mark.parametrize(
    "genesis",
    [
        {},
        {"raw": {}},
        {"raw": {"top": ["0x01", "0xAA"]}},
        {"runtimeGenesis": {"patch": {}}},
    ],
)
def test_missing_raw_storage_is_malformed(genesis) -> None:
    with pytest.raises(MalformedInput):
        chain_spec_to_genesis_data(make_spec(genesis=genesis))


@pytest.mark.parametrize("field, value", [("ss58Format", "42"), ("tokenDecimals", True), ("tokenDecimals", None)])
def test_non_numeric_properties_are_malformed(field, value) -> None:
    properties = {"tokenSymbol": "TEST", "ss58Format": 42, "tokenDecimals": 18, field: value}

    with pytest.raises(MalformedInput):
        chain_spec_to_genesis_data(make_spec(properties=properties))


def test_non_mapping_document_is_malformed() -> None:
    with pytest.raises(MalformedInput):
        chain_spec_to_genesis_data(["not", "a", "chain", "spec"])


def test_load_chain_spec(tmp_path) -> None:
    path = tmp_path / "raw-chain-spec.json"
    path.write_text(json.dumps(make_spec()), encoding="utf-8")

    assert load_chain_spec(path)["id"] == "test-id"


def test_load_chain_spec_errors(tmp_path) -> None:
    with pytest.raises(ArgumentError):
        load_chain_spec(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(MalformedInput):
        load_chain_spec(broken)
