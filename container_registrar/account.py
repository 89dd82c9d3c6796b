import logging
from dataclasses import dataclass
from typing import Any

from substrateinterface import Keypair, KeypairType

from .errors import InvalidMnemonic, MissingCredential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Account:
    address: str
    keypair: Any = None


@dataclass(frozen=True)
class BalanceInfo:
    free: int
    reserved: int
    frozen: int


def has_mnemonic(settings) -> bool:
    secret = settings.account_mnemonic
    return secret is not None and bool(secret.get_secret_value().strip())


def require_mnemonic(settings) -> str:
    secret = settings.account_mnemonic
    mnemonic = secret.get_secret_value().strip() if secret is not None else ""
    if not mnemonic:
        raise MissingCredential("ACCOUNT_MNEMONIC is not set (environment or .env file)")
    return mnemonic


def load_account(mnemonic: str, ss58_format: int = 42) -> Account:
    """
    Derive the sr25519 signing account for a mnemonic.

    The same mnemonic always gives the same address.
    """
    if not Keypair.validate_mnemonic(mnemonic):
        raise InvalidMnemonic("ACCOUNT_MNEMONIC is not a valid mnemonic phrase")

    try:
        keypair = Keypair.create_from_mnemonic(
            mnemonic, ss58_format=ss58_format, crypto_type=KeypairType.SR25519
        )
    except ValueError as e:
        raise InvalidMnemonic(f"Could not derive a keypair from ACCOUNT_MNEMONIC: {e}") from e

    logger.info("Loaded account: %s", keypair.ss58_address)
    return Account(address=keypair.ss58_address, keypair=keypair)


def get_balance(session, address) -> BalanceInfo:
    data = session.query("System", "Account", [address])["data"]
    return BalanceInfo(
        free=int(data["free"]),
        reserved=int(data["reserved"]),
        frozen=int(data.get("frozen", data.get("misc_frozen", 0))),
    )
