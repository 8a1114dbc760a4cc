"""Call data encoding.

- Pure, local and deterministic
- Swappable so :py:func:`vault_deposit.deposit.deposit` can be tested without web3.py ABI machinery
"""

from abc import ABC, abstractmethod
from typing import Sequence

from eth_typing import HexStr
from eth_utils import encode_hex

from vault_deposit.abi import encode_function_call


class CallEncoder(ABC):
    """Encode a contract function call to a transaction `data` payload."""

    @abstractmethod
    def encode(self, fn_abi: dict, args: Sequence) -> HexStr:
        """Encode a function call.

        :param fn_abi:
            Function ABI fragment

        :param args:
            Function arguments in ABI order

        :return:
            0x prefixed call data
        """


class ABICallEncoder(CallEncoder):
    """Standard Solidity ABI encoding.

    4-byte selector of the canonical function signature followed by
    32 byte padded argument words.
    """

    def encode(self, fn_abi: dict, args: Sequence) -> HexStr:
        return encode_hex(encode_function_call(fn_abi, args))
