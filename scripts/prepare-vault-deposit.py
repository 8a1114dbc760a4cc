"""Prepare an ERC-4626 vault deposit transaction.

- Checks the wallet balance, allowance and vault deposit cap
- Prints the unsigned transaction, nothing is signed or broadcast
- Amount is given in raw token units

To run:

.. code-block:: shell

    export JSON_RPC_URL=...
    python scripts/prepare-vault-deposit.py \
        --vault 0x0d877Dc7C8Fa3aD980DfDb18B48eC9F8768359C4 \
        --wallet 0x6d6d4f1b4d9c0c1c1e8a4f4a0f3b4f3e3d2c1b0a \
        --amount 10000000

"""

import argparse
import asyncio
import logging
import sys
from pprint import pformat

from vault_deposit.deposit import DepositRequest, DepositValidationError, deposit
from vault_deposit.provider import create_async_web3, read_json_rpc_url
from vault_deposit.reader import Web3ChainReader
from vault_deposit.utils import setup_console_logging


logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Prepare ERC-4626 vault deposit transaction.")
    parser.add_argument("--vault", type=str, required=True, help="Vault contract address")
    parser.add_argument("--wallet", type=str, required=True, help="Depositor address, also receives the shares")
    parser.add_argument("--amount", type=int, required=True, help="Deposit amount in raw units of the underlying token, e.g. 10000000 for 10 USDC")
    parser.add_argument("--json-rpc-url", type=str, required=False, help="Give JSON-RPC URL - otherwise picked from JSON_RPC_URL environment variable")
    parser.add_argument("--simplified-logging", action="store_true", help="Use simplified output without timestamps")
    return parser.parse_args()


async def prepare(json_rpc_url: str, request: DepositRequest) -> dict:
    web3 = create_async_web3(json_rpc_url)
    chain_id = await web3.eth.chain_id
    logger.info("Connected to chain %d", chain_id)
    reader = Web3ChainReader(web3)
    tx = await deposit(reader, request)
    return tx.as_transaction_dict() | {"chainId": chain_id}


def main():
    args = parse_args()
    setup_console_logging(default_log_level="info", simplified_logging=args.simplified_logging)

    json_rpc_url = args.json_rpc_url or read_json_rpc_url()
    request = DepositRequest(wallet=args.wallet, vault=args.vault, amount=args.amount)

    try:
        tx_data = asyncio.run(prepare(json_rpc_url, request))
    except DepositValidationError as e:
        logger.error("Cannot deposit %d to %s: %s (%s)", request.amount, request.vault, e, e.failure.value)
        sys.exit(1)

    print(f"Unsigned deposit transaction:\n{pformat(tx_data)}")


if __name__ == "__main__":
    main()
