"""
container-registrar: reserve ParaIds and register parachains.

Usage:
  container-registrar reserve
  container-registrar register <paraId> <genesisDataPath> <genesisWasmPath>
  container-registrar register-chain <paraId> <genesisStatePath> <genesisWasmPath>
  container-registrar register-with-spec <paraId> <chainSpecPath>
  container-registrar get-events <blockHash> [account]
  container-registrar check-status [--para-id N] [--account ADDRESS]

Env (or .env):
  NETWORK=dancelight         flashbox, dancelight or mainnet
  ACCOUNT_MNEMONIC=...       required to submit transactions
"""

import argparse
import logging
import sys

from . import workflows
from .errors import RegistrarError

logger = logging.getLogger(__name__)


class UsageParser(argparse.ArgumentParser):
    """Usage errors exit 1, like every other failed workflow."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser():
    parser = UsageParser(
        prog="container-registrar",
        description="Reserve ParaIds and register parachains through the registrar pallets",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", metavar="<workflow>")
    commands.required = True

    commands.add_parser("reserve", help="Reserve the next free ParaId")

    p = commands.add_parser("register", help="Register with genesis data and wasm")
    p.add_argument("para_id", type=int, help="ParaId to register, e.g. 2000")
    p.add_argument("genesis_data", help="Path to the genesis-data file (hex text)")
    p.add_argument("genesis_wasm", help="Path to the genesis-wasm file")

    p = commands.add_parser("register-chain", help="Register with genesis state and wasm")
    p.add_argument("para_id", type=int, help="ParaId to register, e.g. 2000")
    p.add_argument("genesis_state", help="Path to the genesis-state file")
    p.add_argument("genesis_wasm", help="Path to the genesis-wasm file")

    p = commands.add_parser("register-with-spec", help="Register from a raw chain spec")
    p.add_argument("para_id", type=int, help="ParaId to register, e.g. 2000")
    p.add_argument("chain_spec", help="Path to the raw chain spec JSON")

    p = commands.add_parser("get-events", help="Show registrar.Reserved events of a block")
    p.add_argument("block_hash", help="Block hash, 0x-prefixed")
    p.add_argument("account", nargs="?", default=None, help="Only show events for this account")

    p = commands.add_parser("check-status", help="Show registered parachains")
    p.add_argument("--para-id", type=int, default=None, help="Show the lifecycle of this ParaId")
    p.add_argument("--account", default=None, help="Show the balance of this account")

    return parser


def run(args):
    if args.command == "reserve":
        workflows.reserve_para_id()
    elif args.command == "register":
        workflows.register_parachain(args.para_id, args.genesis_data, args.genesis_wasm)
    elif args.command == "register-chain":
        workflows.register_chain(args.para_id, args.genesis_state, args.genesis_wasm)
    elif args.command == "register-with-spec":
        workflows.register_with_spec(args.para_id, args.chain_spec)
    elif args.command == "get-events":
        workflows.get_block_events(args.block_hash, args.account)
    elif args.command == "check-status":
        workflows.check_status(args.para_id, args.account)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        run(args)
    except RegistrarError as e:
        print(f"\nError in {args.command}: {e}", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("Unexpected failure in %s", args.command)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
