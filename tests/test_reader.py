"""Web3ChainReader against a mocked async web3 connection.

We do not spin up a node: `eth_call` and `eth_estimateGas` are replaced
with canned ABI encoded responses.
"""

from unittest.mock import AsyncMock, MagicMock

import eth_abi
import pytest
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError

from vault_deposit.abi import ERC20_ABI, ERC4626_ABI, get_function_abi_by_name, get_function_selector
from vault_deposit.deposit import DepositRequest, MissingAllowanceError, deposit
from vault_deposit.reader import ChainReader, Web3ChainReader


WALLET = "0x" + "aa" * 20
VAULT = "0x" + "bb" * 20
ASSET = "0x" + "cc" * 20


def _selector(abi: list, name: str) -> bytes:
    return bytes(get_function_selector(get_function_abi_by_name(abi, name)))


@pytest.fixture()
def web3() -> MagicMock:
    """AsyncWeb3 stand-in."""
    web3 = MagicMock()
    web3.eth.call = AsyncMock()
    web3.eth.estimate_gas = AsyncMock(return_value=91_234)
    return web3


def make_chain(balance: int, allowance: int, max_deposit: int):
    """eth_call side effect serving one vault and its asset."""

    responses = {
        _selector(ERC4626_ABI, "asset"): eth_abi.encode(["address"], [ASSET]),
        _selector(ERC20_ABI, "balanceOf"): eth_abi.encode(["uint256"], [balance]),
        _selector(ERC20_ABI, "allowance"): eth_abi.encode(["uint256"], [allowance]),
        _selector(ERC4626_ABI, "maxDeposit"): eth_abi.encode(["uint256"], [max_deposit]),
    }

    async def _call(tx, block_identifier=None):
        return HexBytes(responses[bytes(tx["data"][0:4])])

    return _call


def test_is_chain_reader(web3):
    assert isinstance(Web3ChainReader(web3), ChainReader)


@pytest.mark.asyncio
async def test_read_uint(web3):
    """balanceOf() call is encoded, sent to the checksummed address and decoded."""
    web3.eth.call.return_value = HexBytes(eth_abi.encode(["uint256"], [1000]))
    reader = Web3ChainReader(web3)

    value = await reader.read(ASSET, get_function_abi_by_name(ERC20_ABI, "balanceOf"), (WALLET,))

    assert value == 1000
    tx = web3.eth.call.call_args.args[0]
    assert tx["to"] == Web3.to_checksum_address(ASSET)
    assert bytes(tx["data"][0:4]).hex() == "70a08231"
    assert web3.eth.call.call_args.kwargs["block_identifier"] == "latest"


@pytest.mark.asyncio
async def test_read_address_checksummed(web3):
    """asset() comes back checksummed."""
    web3.eth.call.return_value = HexBytes(eth_abi.encode(["address"], [ASSET]))
    reader = Web3ChainReader(web3)

    value = await reader.read(VAULT, get_function_abi_by_name(ERC4626_ABI, "asset"))

    assert value == Web3.to_checksum_address(ASSET)


@pytest.mark.asyncio
async def test_read_at_block(web3):
    """Reads can be pinned to a block."""
    web3.eth.call.return_value = HexBytes(eth_abi.encode(["uint256"], [1]))
    reader = Web3ChainReader(web3, block_identifier=19_000_000)

    await reader.read(VAULT, get_function_abi_by_name(ERC4626_ABI, "maxDeposit"), (WALLET,))

    assert web3.eth.call.call_args.kwargs["block_identifier"] == 19_000_000


@pytest.mark.asyncio
async def test_read_no_contract(web3):
    """Empty return data from a non-contract address raises the decoder error."""
    web3.eth.call.return_value = HexBytes(b"")
    reader = Web3ChainReader(web3)

    with pytest.raises(DecodingError):
        await reader.read(VAULT, get_function_abi_by_name(ERC4626_ABI, "asset"))


@pytest.mark.asyncio
async def test_read_revert_propagates(web3):
    web3.eth.call.side_effect = ContractLogicError("execution reverted")
    reader = Web3ChainReader(web3)

    with pytest.raises(ContractLogicError):
        await reader.read(VAULT, get_function_abi_by_name(ERC4626_ABI, "asset"))


@pytest.mark.asyncio
async def test_read_malformed_address(web3):
    """Address validation is left to web3.py."""
    reader = Web3ChainReader(web3)

    with pytest.raises(ValueError):
        await reader.read("0x1234", get_function_abi_by_name(ERC4626_ABI, "asset"))

    web3.eth.call.assert_not_awaited()


@pytest.mark.asyncio
async def test_estimate_gas(web3):
    reader = Web3ChainReader(web3)

    gas = await reader.estimate_gas(WALLET, VAULT, "0x6e553f65", 0)

    assert gas == 91_234
    tx = web3.eth.estimate_gas.call_args.args[0]
    assert tx == {
        "from": Web3.to_checksum_address(WALLET),
        "to": Web3.to_checksum_address(VAULT),
        "data": "0x6e553f65",
        "value": 0,
    }


@pytest.mark.asyncio
async def test_deposit_over_web3(web3):
    """Full deposit preparation through the web3 reader."""
    web3.eth.call.side_effect = make_chain(balance=1000, allowance=500, max_deposit=2**256 - 1)
    reader = Web3ChainReader(web3)

    tx = await deposit(reader, DepositRequest(wallet=WALLET, vault=VAULT, amount=100))

    assert tx.from_ == WALLET
    assert tx.to == VAULT
    assert tx.value == 0
    assert tx.gas == 91_234
    assert tx.data.startswith("0x6e553f65")
    assert web3.eth.call.await_count == 4

    # balanceOf() and allowance() went to the asset
    targets = [c.args[0]["to"] for c in web3.eth.call.call_args_list]
    assert targets == [Web3.to_checksum_address(a) for a in (VAULT, ASSET, ASSET, VAULT)]


@pytest.mark.asyncio
async def test_deposit_over_web3_missing_allowance(web3):
    """Gas is not estimated when a check fails."""
    web3.eth.call.side_effect = make_chain(balance=1000, allowance=10, max_deposit=2**256 - 1)
    reader = Web3ChainReader(web3)

    with pytest.raises(MissingAllowanceError):
        await deposit(reader, DepositRequest(wallet=WALLET, vault=VAULT, amount=100))

    assert web3.eth.call.await_count == 3
    web3.eth.estimate_gas.assert_not_awaited()
