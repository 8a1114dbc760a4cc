"""In-memory chain for unit testing.

Stands in for a local node with a mock ERC-20 and a mock ERC-4626 deployed.

- No JSON-RPC, no EVM: token balances, allowances and vault deposit limits are Python dicts
- Every call is recorded in :py:attr:`MockChainReader.calls`, so tests can assert
  which reads were done and in which order

Example:

.. code-block:: python

    reader = MockChainReader()
    reader.add_vault(VAULT, ASSET)
    reader.mint(ASSET, WALLET, 1000)
    reader.approve(ASSET, WALLET, VAULT, 500)

    tx = await deposit(reader, DepositRequest(wallet=WALLET, vault=VAULT, amount=100))
"""

from dataclasses import dataclass, field
from typing import Sequence

import eth_abi
from eth_typing import HexAddress, HexStr
from hexbytes import HexBytes

from vault_deposit.abi import ERC4626_ABI, MAX_UINT256, get_function_abi_by_name, get_function_selector
from vault_deposit.reader import ChainReader


#: Gas units :py:class:`MockChainReader` returns for a deposit that would succeed
DEFAULT_MOCK_DEPOSIT_GAS = 75_000


class SimulatedRevert(Exception):
    """Mock chain call would revert."""


@dataclass(slots=True)
class MockToken:
    """ERC-20 state."""

    balances: dict[str, int] = field(default_factory=dict)

    #: (owner, spender) -> amount
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)


@dataclass(slots=True)
class MockVault:
    """ERC-4626 state."""

    asset: HexAddress | str

    #: Same for every receiver, unlimited by default
    max_deposit: int = MAX_UINT256


def _key(address: str) -> str:
    return address.lower()


class MockChainReader(ChainReader):
    """Answer deposit related reads from in-memory state."""

    def __init__(self, gas: int = DEFAULT_MOCK_DEPOSIT_GAS, reject_zero_deposit=False):
        """

        :param gas:
            Gas estimate returned for a passing deposit

        :param reject_zero_deposit:
            Make gas estimation revert for zero amount deposits,
            like some vaults do
        """
        self.gas = gas
        self.reject_zero_deposit = reject_zero_deposit
        self.tokens: dict[str, MockToken] = {}
        self.vaults: dict[str, MockVault] = {}

        #: ("read", address, function name, args) and ("estimate_gas", from, to, data, value) tuples
        self.calls: list[tuple] = []

    def add_vault(self, vault: HexAddress | str, asset: HexAddress | str):
        """Deploy a vault and its underlying token, if not yet there."""
        self.vaults[_key(vault)] = MockVault(asset=asset)
        self.tokens.setdefault(_key(asset), MockToken())

    def mint(self, token: HexAddress | str, to: HexAddress | str, amount: int):
        balances = self._get_token(token).balances
        balances[_key(to)] = balances.get(_key(to), 0) + amount

    def approve(self, token: HexAddress | str, owner: HexAddress | str, spender: HexAddress | str, amount: int):
        self._get_token(token).allowances[(_key(owner), _key(spender))] = amount

    def set_max_deposit_limit(self, vault: HexAddress | str, limit: int):
        self._get_vault(vault).max_deposit = limit

    def get_read_names(self) -> list[str]:
        """Function names of reads done so far, in order."""
        return [c[2] for c in self.calls if c[0] == "read"]

    def _get_token(self, address: str) -> MockToken:
        token = self.tokens.get(_key(address))
        if token is None:
            raise SimulatedRevert(f"No token contract at {address}")
        return token

    def _get_vault(self, address: str) -> MockVault:
        vault = self.vaults.get(_key(address))
        if vault is None:
            raise SimulatedRevert(f"No vault contract at {address}")
        return vault

    async def read(
        self,
        address: HexAddress | str,
        fn_abi: dict,
        args: Sequence = (),
    ) -> HexAddress | int:
        name = fn_abi["name"]
        self.calls.append(("read", address, name, tuple(args)))

        match name:
            case "asset":
                return self._get_vault(address).asset
            case "maxDeposit":
                return self._get_vault(address).max_deposit
            case "balanceOf":
                (owner,) = args
                return self._get_token(address).balances.get(_key(owner), 0)
            case "allowance":
                owner, spender = args
                return self._get_token(address).allowances.get((_key(owner), _key(spender)), 0)
            case _:
                raise SimulatedRevert(f"Mock chain does not implement {name}()")

    async def estimate_gas(
        self,
        from_: HexAddress | str,
        to: HexAddress | str,
        data: HexStr,
        value: int = 0,
    ) -> int:
        self.calls.append(("estimate_gas", from_, to, data, value))

        vault = self._get_vault(to)
        payload = HexBytes(data)
        deposit_abi = get_function_abi_by_name(ERC4626_ABI, "deposit")
        if payload[0:4] != get_function_selector(deposit_abi):
            raise SimulatedRevert(f"Unknown function selector {payload[0:4].hex()}")

        if value != 0:
            raise SimulatedRevert("deposit() is not payable")

        amount, _receiver = eth_abi.decode(["uint256", "address"], payload[4:])
        token = self._get_token(vault.asset)

        if amount == 0 and self.reject_zero_deposit:
            raise SimulatedRevert("ZeroDeposit()")

        if amount > vault.max_deposit:
            raise SimulatedRevert("ERC4626ExceededMaxDeposit")

        if token.balances.get(_key(from_), 0) < amount:
            raise SimulatedRevert("ERC20InsufficientBalance")

        if token.allowances.get((_key(from_), _key(to)), 0) < amount:
            raise SimulatedRevert("ERC20InsufficientAllowance")

        return self.gas
