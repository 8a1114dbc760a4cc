"""Prepare ERC-4626 vault deposits.

- Check the depositor has the underlying token, has approved the vault and the vault accepts the amount
- Craft the `deposit(assets, receiver)` call and estimate its gas
- The resulting transaction must be signed and broadcast by the caller

The checks are advisory. Balances, allowances and deposit caps may
change between :py:func:`deposit` returning and the transaction landing on chain.
"""

import enum
import logging
from dataclasses import dataclass

from eth_typing import HexAddress, HexStr

from vault_deposit.abi import ERC20_ABI, ERC4626_ABI, MAX_UINT256, get_function_abi_by_name
from vault_deposit.encoder import ABICallEncoder, CallEncoder
from vault_deposit.reader import ChainReader


logger = logging.getLogger(__name__)


_ASSET = get_function_abi_by_name(ERC4626_ABI, "asset")
_MAX_DEPOSIT = get_function_abi_by_name(ERC4626_ABI, "maxDeposit")
_DEPOSIT = get_function_abi_by_name(ERC4626_ABI, "deposit")
_BALANCE_OF = get_function_abi_by_name(ERC20_ABI, "balanceOf")
_ALLOWANCE = get_function_abi_by_name(ERC20_ABI, "allowance")


class ValidationFailure(enum.Enum):
    """Why a deposit cannot be prepared."""

    #: Wallet holds less underlying token than the amount
    insufficient_balance = "insufficient_balance"

    #: Wallet has not approved the vault for the amount
    insufficient_allowance = "insufficient_allowance"

    #: Vault `maxDeposit()` is below the amount
    exceeds_max_deposit = "exceeds_max_deposit"


class DepositValidationError(Exception):
    """Deposit cannot be done with the current on-chain state.

    Catch this to tell the user what to fix, use :py:attr:`failure`
    instead of the message to tell the cases apart.
    """

    #: Set by subclasses
    failure: ValidationFailure

    #: Fixed human readable message
    message: str

    def __init__(self):
        super().__init__(self.message)


class NotEnoughBalanceError(DepositValidationError):
    """Top up the wallet."""

    failure = ValidationFailure.insufficient_balance
    message = "Not enough balance"


class MissingAllowanceError(DepositValidationError):
    """Call `approve(vault, amount)` on the underlying token first."""

    failure = ValidationFailure.insufficient_allowance
    message = "Not enough allowance"


class AmountExceedsMaxDepositError(DepositValidationError):
    """Deposit less."""

    failure = ValidationFailure.exceeds_max_deposit
    message = "Amount exceeds max deposit"


@dataclass(slots=True, frozen=True)
class DepositRequest:
    """What we want to deposit where."""

    #: Depositor and share receiver
    wallet: HexAddress | str

    #: ERC-4626 vault contract
    vault: HexAddress | str

    #: Amount of the underlying token in raw units
    amount: int

    def __post_init__(self):
        assert isinstance(self.wallet, str) and self.wallet.startswith("0x"), f"Got wallet {self.wallet}"
        assert isinstance(self.vault, str) and self.vault.startswith("0x"), f"Got vault {self.vault}"
        assert type(self.amount) == int, f"Got {type(self.amount)}: {self.amount}"
        assert 0 <= self.amount <= MAX_UINT256, f"Amount out of uint256 range: {self.amount}"


@dataclass(slots=True, frozen=True)
class TransactionDescriptor:
    """Unsigned deposit transaction.

    - Nonce and gas price are not included, the signer fills them in
    """

    #: 0x prefixed `deposit(uint256,address)` call data
    data: HexStr

    #: Depositor wallet
    from_: HexAddress | str

    #: Vault contract
    to: HexAddress | str

    #: Attached native currency, always zero
    value: int

    #: Estimated gas units
    gas: int

    def as_transaction_dict(self) -> dict:
        """Get the transaction in the format web3.py signers accept.

        Example:

        .. code-block:: python

            tx = await deposit(reader, request)
            tx_data = tx.as_transaction_dict()
            tx_data |= estimate_gas_price(web3).get_tx_gas_params()
            signed = hot_wallet.sign_transaction_with_new_nonce(tx_data)
        """
        return {
            "from": self.from_,
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "gas": self.gas,
        }


async def deposit(
    reader: ChainReader,
    request: DepositRequest,
    encoder: CallEncoder | None = None,
) -> TransactionDescriptor:
    """Prepare a deposit of an amount of the underlying asset into an ERC-4626 vault.

    Reads are done one by one and the first failing check aborts
    before any further chain access.

    1. `asset()` of the vault
    2. `balanceOf(wallet)` of the asset
    3. `allowance(wallet, vault)` of the asset
    4. `maxDeposit(wallet)` of the vault
    5. Encode `deposit(amount, wallet)`
    6. `eth_estimateGas` the deposit with zero value

    Example:

    .. code-block:: python

        reader = Web3ChainReader(web3)
        tx = await deposit(
            reader,
            DepositRequest(wallet=depositor, vault=vault_address, amount=100 * 10**6),
        )
        assert tx.value == 0

    :param reader:
        Chain access

    :param request:
        Wallet, vault and the raw amount

    :param encoder:
        Call data encoder, standard Solidity ABI by default

    :raise NotEnoughBalanceError:
        The wallet does not have enough balance to deposit the amount

    :raise MissingAllowanceError:
        The wallet does not have enough allowance to deposit the amount

    :raise AmountExceedsMaxDepositError:
        The amount exceeds the max deposit

    :return:
        Unsigned transaction. Any gas estimation failure is raised as is.
    """

    assert isinstance(reader, ChainReader), f"Got {type(reader)}"
    assert isinstance(request, DepositRequest), f"Got {type(request)}"

    if encoder is None:
        encoder = ABICallEncoder()

    wallet = request.wallet
    vault = request.vault
    amount = request.amount

    logger.info("Preparing deposit to vault %s, raw amount %d, from %s", vault, amount, wallet)

    asset = await reader.read(vault, _ASSET)

    balance = await reader.read(asset, _BALANCE_OF, (wallet,))
    logger.debug("Asset %s balance of %s is %d", asset, wallet, balance)
    if balance < amount:
        raise NotEnoughBalanceError()

    allowance = await reader.read(asset, _ALLOWANCE, (wallet, vault))
    logger.debug("Asset %s allowance %s -> %s is %d", asset, wallet, vault, allowance)
    if allowance < amount:
        raise MissingAllowanceError()

    max_deposit = await reader.read(vault, _MAX_DEPOSIT, (wallet,))
    logger.debug("Vault %s max deposit for %s is %d", vault, wallet, max_deposit)
    if amount > max_deposit:
        raise AmountExceedsMaxDepositError()

    data = encoder.encode(_DEPOSIT, (amount, wallet))

    gas = await reader.estimate_gas(wallet, vault, data, 0)

    return TransactionDescriptor(
        data=data,
        from_=wallet,
        to=vault,
        value=0,
        gas=gas,
    )


#: Alias
build_deposit = deposit
