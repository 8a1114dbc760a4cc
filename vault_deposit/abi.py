"""ABI fragments and helpers to deal with ABI encode/decode.

We do not ship compiled contract artifacts. Only the handful of
ERC-20 and ERC-4626 functions needed to prepare a deposit are described here.

- `ERC-20 <https://eips.ethereum.org/EIPS/eip-20>`__
- `ERC-4626 <https://eips.ethereum.org/EIPS/eip-4626>`__
"""

from typing import Any, Sequence

import eth_abi
from eth_utils import function_abi_to_4byte_selector
from hexbytes import HexBytes
from web3 import Web3


#: Largest value a Solidity uint256 can hold.
#:
#: OpenZeppelin ERC-4626 returns this from `maxDeposit()` when there is no cap.
MAX_UINT256 = 2**256 - 1


#: ERC-20 functions we read before a deposit
ERC20_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]


#: ERC-4626 functions we read and call
ERC4626_ABI = [
    {
        "name": "asset",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "maxDeposit",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "receiver", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "assets", "type": "uint256"},
            {"name": "receiver", "type": "address"},
        ],
        "outputs": [{"name": "shares", "type": "uint256"}],
    },
]


def get_function_abi_by_name(abi: list[dict], function_name: str) -> dict | None:
    """Get function ABI by its name."""
    for item in abi:
        if item.get("type") == "function" and item.get("name") == function_name:
            return item
    return None  # Return None if function is not found


def get_function_signature(fn_abi: dict) -> str:
    """Get the canonical Solidity signature of a function.

    Example:

    .. code-block:: python

        fn_abi = get_function_abi_by_name(ERC4626_ABI, "deposit")
        assert get_function_signature(fn_abi) == "deposit(uint256,address)"

    Tuple arguments are not supported.
    """
    arg_types = ",".join(i["type"] for i in fn_abi["inputs"])
    return f"{fn_abi['name']}({arg_types})"


def get_function_selector(fn_abi: dict) -> bytes:
    """Get Solidity function selector.

    :return:
        First 32-bit (4 bytes) keccak hash of the canonical signature.
    """
    return function_abi_to_4byte_selector(fn_abi)


def encode_with_signature(function_signature: str, args: Sequence) -> bytes:
    """Mimic Solidity's abi.encodeWithSignature() in Python.

    Example:

    .. code-block:: python

            payload = encode_with_signature("deposit(uint256,address)", [100, receiver])
            assert payload[0:4].hex() == "6e553f65"

    :param function_signature:
        Solidity function signature that can be hashed to a selector.

        ABI will be extracted from this signature.

    :param args:
        Argument values to be encoded.
    """

    assert type(args) in (tuple, list)

    function_selector = Web3.keccak(text=function_signature)[0:4]
    selector_text = function_signature[function_signature.find("(") + 1 : function_signature.rfind(")")]
    arg_types = selector_text.split(",") if selector_text else []
    encoded_args = eth_abi.encode(arg_types, args)
    return function_selector + encoded_args


def encode_function_call(
    fn_abi: dict,
    args: Sequence | None = None,
) -> HexBytes:
    """Encode function selector + its arguments as data payload.

    :param fn_abi:
        Function ABI fragment, e.g. one of :py:data:`ERC4626_ABI` entries.

    :param args:
        Argument values to be encoded.

    :return:
        Solidity's function selector + argument payload.
    """

    if args is None:
        args = ()

    assert type(args) in (tuple, list), f"Expected args as a tuple or list, got {type(args)}"
    arg_types = [i["type"] for i in fn_abi["inputs"]]
    assert len(arg_types) == len(args), f"Function {get_function_signature(fn_abi)} takes {len(arg_types)} arguments, got {len(args)}: {args}"

    try:
        encoded = eth_abi.encode(arg_types, args)
    except Exception as e:
        raise RuntimeError(f"Could not encode ABI: {fn_abi}, args: {args}") from e
    return HexBytes(get_function_selector(fn_abi) + encoded)


def decode_function_output(fn_abi: dict, data: bytes) -> tuple[Any, ...]:
    """Decode raw return value of Solidity function.

    :param data:
        Raw encoded Solidity bytes as returned by `eth_call`.
    """
    arg_types = [t["type"] for t in fn_abi["outputs"]]
    return eth_abi.decode(arg_types, bytes(data))
