"""Read-only chain access.

:py:class:`ChainReader` is the narrow interface the deposit builder talks to.
It does only two things

- `eth_call` a view function and decode its single return value

- `eth_estimateGas` a transaction

:py:class:`Web3ChainReader` implements it on the top of web3.py `AsyncWeb3`.
For unit tests see :py:class:`vault_deposit.testing.MockChainReader`.

Readers do not retry, cache or wrap errors. Whatever the JSON-RPC node
or the ABI decoder raises is passed to the caller as is.
"""

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from eth_typing import BlockIdentifier, HexAddress, HexStr
from web3 import AsyncWeb3, Web3

from vault_deposit.abi import decode_function_output, encode_function_call, get_function_signature


logger = logging.getLogger(__name__)


class ChainReader(ABC):
    """Read-only contract calls and gas estimation."""

    @abstractmethod
    async def read(
        self,
        address: HexAddress | str,
        fn_abi: dict,
        args: Sequence = (),
    ) -> HexAddress | int:
        """Call a view function.

        :param address:
            Contract address

        :param fn_abi:
            Function ABI fragment with a single `address` or `uint256` output

        :param args:
            Function arguments in ABI order

        :return:
            Decoded return value. Addresses are checksummed.
        """

    @abstractmethod
    async def estimate_gas(
        self,
        from_: HexAddress | str,
        to: HexAddress | str,
        data: HexStr,
        value: int = 0,
    ) -> int:
        """Simulate a transaction and return the gas units it needs.

        :raise Exception:
            Whatever the node raises if the transaction would revert
        """


class Web3ChainReader(ChainReader):
    """Chain reader using an async web3.py connection.

    Example:

    .. code-block:: python

        web3 = create_async_web3(read_json_rpc_url())
        reader = Web3ChainReader(web3)
        tx = await deposit(reader, DepositRequest(wallet=wallet, vault=vault, amount=100 * 10**6))

    """

    def __init__(self, web3: AsyncWeb3, block_identifier: BlockIdentifier = "latest"):
        """

        :param web3:
            Async web3.py connection

        :param block_identifier:
            Block number or tag all reads and estimations are done against
        """
        self.web3 = web3
        self.block_identifier = block_identifier

    def __repr__(self):
        return f"<Web3ChainReader at {self.block_identifier}>"

    async def read(
        self,
        address: HexAddress | str,
        fn_abi: dict,
        args: Sequence = (),
    ) -> HexAddress | int:
        outputs = fn_abi["outputs"]
        assert len(outputs) == 1, f"Only single return value functions supported, got {get_function_signature(fn_abi)} with {len(outputs)} outputs"

        tx = {
            "to": Web3.to_checksum_address(address),
            "data": encode_function_call(fn_abi, args),
        }
        raw_result = await self.web3.eth.call(tx, block_identifier=self.block_identifier)
        value = decode_function_output(fn_abi, raw_result)[0]

        if outputs[0]["type"] == "address":
            value = Web3.to_checksum_address(value)

        logger.debug(
            "eth_call %s.%s, args %s, block %s -> %s",
            address,
            get_function_signature(fn_abi),
            args,
            self.block_identifier,
            value,
        )
        return value

    async def estimate_gas(
        self,
        from_: HexAddress | str,
        to: HexAddress | str,
        data: HexStr,
        value: int = 0,
    ) -> int:
        tx = {
            "from": Web3.to_checksum_address(from_),
            "to": Web3.to_checksum_address(to),
            "data": data,
            "value": value,
        }
        gas = await self.web3.eth.estimate_gas(tx, block_identifier=self.block_identifier)
        logger.debug("eth_estimateGas from %s to %s, %d bytes of data -> %d", from_, to, (len(data) - 2) // 2, gas)
        return gas
