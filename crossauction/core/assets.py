"""
Assets - The two asset classes and the ledgers that move them.

The auction never holds balances itself; it drives two external ledgers:

1. **Token ledger**: a fungible token with allowance semantics
   (``transfer_from`` pulls an approved amount, ``transfer`` pays out).
2. **Native ledger**: the chain's native currency. ``receive`` models value
   arriving with a call, ``send`` pays out and may be refused by the
   recipient.

Both calls report failure by returning False; the auction turns that into
``TransferFailed`` and rolls the enclosing operation back.

InMemoryToken and InMemoryNative are reference implementations used for
simulation and tests. ``as_account(address)`` returns a handle acting on
behalf of one account, which is what the auction is given.
"""

from enum import IntEnum
from typing import Dict, Protocol, Set, runtime_checkable

from crossauction.utils.logger import get_logger

logger = get_logger("assets")


class Asset(IntEnum):
    """Asset classes accepted by the auction."""
    NATIVE = 0
    TOKEN = 1

    @property
    def counterpart(self) -> "Asset":
        """The asset a depositor of this one is rewarded in."""
        return Asset.TOKEN if self is Asset.NATIVE else Asset.NATIVE

    @property
    def label(self) -> str:
        return self.name.lower()


# =============================================================================
# Collaborator Interfaces
# =============================================================================


@runtime_checkable
class TokenLedger(Protocol):
    """Fungible-token ledger as seen from the auction account."""

    def transfer_from(self, payer: str, recipient: str, amount: int) -> bool:
        ...

    def transfer(self, recipient: str, amount: int) -> bool:
        ...

    def balance_of(self, account: str) -> int:
        ...


@runtime_checkable
class NativeTransfer(Protocol):
    """Native-currency movements as seen from the auction account."""

    def receive(self, payer: str, amount: int) -> bool:
        ...

    def send(self, recipient: str, amount: int) -> bool:
        ...

    def balance_of(self, account: str) -> int:
        ...


# =============================================================================
# In-memory Token
# =============================================================================


class InMemoryToken:
    """
    Minimal fungible token with balances and allowances.

    Attributes:
        balances: account -> balance
        allowances: owner -> spender -> remaining allowance
    """

    def __init__(self, symbol: str = "TKN"):
        self.symbol = symbol
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[str, Dict[str, int]] = {}
        self.total_supply = 0

    def mint(self, account: str, amount: int) -> None:
        self.balances[account] = self.balances.get(account, 0) + amount
        self.total_supply += amount

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self.allowances.setdefault(owner, {})[spender] = amount
        return True

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def move(self, sender: str, recipient: str, amount: int) -> bool:
        """Move tokens between accounts; False if the sender is short."""
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True

    def spend_allowance(self, spender: str, payer: str, recipient: str, amount: int) -> bool:
        """Move tokens on behalf of payer, consuming spender's allowance."""
        allowed = self.allowance(payer, spender)
        if allowed < amount:
            logger.debug(f"{self.symbol}: allowance {allowed} < {amount} for {spender} on {payer}")
            return False
        if not self.move(payer, recipient, amount):
            return False
        self.allowances[payer][spender] = allowed - amount
        return True

    def as_account(self, address: str) -> "TokenAccount":
        return TokenAccount(self, address)


class TokenAccount:
    """TokenLedger bound to one account (the auction)."""

    def __init__(self, token: InMemoryToken, address: str):
        self.token = token
        self.address = address

    def transfer_from(self, payer: str, recipient: str, amount: int) -> bool:
        return self.token.spend_allowance(self.address, payer, recipient, amount)

    def transfer(self, recipient: str, amount: int) -> bool:
        return self.token.move(self.address, recipient, amount)

    def balance_of(self, account: str) -> int:
        return self.token.balance_of(account)


# =============================================================================
# In-memory Native Currency
# =============================================================================


class InMemoryNative:
    """
    Native-currency balances with recipients that may refuse payments.

    Attributes:
        balances: account -> balance
        rejecting: accounts whose incoming payments fail
    """

    def __init__(self):
        self.balances: Dict[str, int] = {}
        self.rejecting: Set[str] = set()

    def fund(self, account: str, amount: int) -> None:
        self.balances[account] = self.balances.get(account, 0) + amount

    def reject(self, account: str, rejecting: bool = True) -> None:
        """Make an account refuse (or accept again) incoming payments."""
        if rejecting:
            self.rejecting.add(account)
        else:
            self.rejecting.discard(account)

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def move(self, sender: str, recipient: str, amount: int) -> bool:
        if recipient in self.rejecting:
            logger.debug(f"native: {recipient} rejected payment of {amount}")
            return False
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True

    def as_account(self, address: str) -> "NativeAccount":
        return NativeAccount(self, address)


class NativeAccount:
    """NativeTransfer bound to one account (the auction)."""

    def __init__(self, native: InMemoryNative, address: str):
        self.native = native
        self.address = address

    def receive(self, payer: str, amount: int) -> bool:
        return self.native.move(payer, self.address, amount)

    def send(self, recipient: str, amount: int) -> bool:
        return self.native.move(self.address, recipient, amount)

    def balance_of(self, account: str) -> int:
        return self.native.balance_of(account)
