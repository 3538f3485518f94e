"""
External account holdings.

Implements BalanceTable[Account, AssetId] -> Amount: what each account holds
outside the pools. Every paired transfer into a pool debits this table, and
every payout credits it.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

from ..core.errors import TransferFailureError, ValidationError
from ..core.fixed_point import check_amount
from .journal import Journal


# Type aliases
Account = str  # opaque account identifier
AssetId = str
Amount = int  # Non-negative integer scaled by 1e18

# Native settlement asset identifier
NATIVE_ASSET = "0x" + "00" * 32

# Called after a native credit lands; raising rejects the payment.
ReceiveHook = Callable[[AssetId, Amount], None]


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Writes are journaled, so a failed atomic block restores the balances it
    touched. Accounts may register a receive hook for native payouts; the hook
    runs after the credit is applied and may call back into the pools.
    """

    def __init__(self, journal: Optional[Journal] = None):
        self.journal = journal if journal is not None else Journal()
        self._balances: Dict[Tuple[Account, AssetId], Amount] = {}
        self._receivers: Dict[Account, ReceiveHook] = {}

    def get(self, account: Account, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            AmountOverflowError: If amount is negative or above MAX_AMOUNT
        """
        check_amount(amount)
        key = (account, asset)
        with self.journal.atomic():
            previous = self._balances.get(key)
            self.journal.record(lambda: self._restore(key, previous))
            if amount == 0:
                # Remove zero balances to keep table sparse
                self._balances.pop(key, None)
            else:
                self._balances[key] = amount

    def _restore(self, key: Tuple[Account, AssetId], previous: Optional[Amount]) -> None:
        if previous is None:
            self._balances.pop(key, None)
        else:
            self._balances[key] = previous

    def debit(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Take ``amount`` out of the account's holdings (the payer side of a transfer).

        Raises:
            ValidationError: If the account does not hold enough of the asset
        """
        check_amount(amount)
        with self.journal.atomic():
            current = self.get(account, asset)
            if amount > current:
                raise ValidationError(
                    f"insufficient balance for {account}: {current} < {amount}"
                )
            self.set(account, asset, current - amount)

    def credit(self, account: Account, asset: AssetId, amount: Amount) -> None:
        """
        Pay ``amount`` into the account's holdings.

        Native credits run the account's receive hook; if it raises, the credit
        is undone and ``TransferFailureError`` is raised from the hook's error.
        """
        check_amount(amount)
        with self.journal.atomic():
            self.set(account, asset, self.get(account, asset) + amount)
            if asset != NATIVE_ASSET:
                return
            hook = self._receivers.get(account)
            if hook is None:
                return
            try:
                hook(asset, amount)
            except Exception as exc:
                raise TransferFailureError(
                    f"native payout of {amount} to {account} failed: {exc}"
                ) from exc

    def transfer(self, sender: Account, recipient: Account, asset: AssetId, amount: Amount) -> None:
        """Move ``amount`` between two accounts; all-or-nothing."""
        with self.journal.atomic():
            self.debit(sender, asset, amount)
            self.credit(recipient, asset, amount)

    def set_receiver(self, account: Account, hook: Optional[ReceiveHook]) -> None:
        """Install (or with ``None`` remove) the native receive hook of an account."""
        if hook is None:
            self._receivers.pop(account, None)
        else:
            self._receivers[account] = hook

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Account, Amount]:
        """
        Get all balances for a specific asset.

        Returns:
            Dictionary mapping account -> amount
        """
        result = {}
        with self.journal.lock:
            for (acct, a), amount in self._balances.items():
                if a == asset:
                    result[acct] = amount
        return result

    def total(self, asset: AssetId) -> Amount:
        return sum(self.get_balances_for_asset(asset).values())

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
