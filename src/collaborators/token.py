"""
Token — transferable токен

In-process коллаборатор, используемый как collateral asset (6 decimals) и как
managed stable asset (18 decimals, mint/burn только для reserve как owner).

Поддерживает issuer blacklist (restricted): oracle считает пул,
заблокированный эмитентом reference-актива, нездоровым.
"""

import logging
from typing import Optional

from src.core.domain.collaborator_state import TokenState
from src.core.domain.events import Approval, Transfer
from src.core.implementation import Implementation, guarded
from src.core.ledger import Ledger
from src.core.token_ledger import ZERO_ADDRESS, allowance_of, credit, debit, move, set_allowance, spend_allowance

logger = logging.getLogger(__name__)


class Token(Implementation):
    """
    Transferable токен.

    Args:
        ledger: Общий ledger
        owner: Эмитент (единственный, кто может mint/burn и вести blacklist)
        name: Имя токена
        symbol: Тикер
        decimals: Число знаков после запятой
    """

    kind = "token"
    state_model = TokenState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        name: str,
        symbol: str,
        decimals: int,
        address: Optional[str] = None,
    ):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        super().__init__(ledger, owner, address=address)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        return self._state.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return allowance_of(self._state.allowances, owner, spender)

    def total_supply(self) -> int:
        return self._state.total_supply

    def is_restricted(self, account: str) -> bool:
        return account in self._state.restricted

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------

    @guarded
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._transfer(sender, recipient, amount)
        return True

    @guarded
    def approve(self, sender: str, spender: str, amount: int) -> bool:
        self._commit(allowances=set_allowance(self._state.allowances, sender, spender, amount))
        self._emit(Approval, owner=sender, spender=spender, value=amount)
        return True

    @guarded
    def transfer_from(self, sender: str, holder: str, recipient: str, amount: int) -> bool:
        """
        Перевод средств holder'а силами sender'а (нужен allowance, даже если sender == holder).

        Raises:
            InsufficientFunds: transfer_exceeds_balance / transfer_exceeds_allowance
        """
        self._transfer(holder, recipient, amount)
        self._commit(
            allowances=spend_allowance(
                self._state.allowances,
                holder,
                sender,
                amount,
                f"{self.symbol}: transfer amount exceeds allowance",
                "transfer_exceeds_allowance",
            )
        )
        return True

    def _transfer(self, holder: str, recipient: str, amount: int) -> None:
        balances = move(
            self._state.balances,
            holder,
            recipient,
            amount,
            f"{self.symbol}: transfer amount exceeds balance",
            "transfer_exceeds_balance",
        )
        self._commit(balances=balances)
        self._emit(Transfer, sender=holder, recipient=recipient, value=amount)

    # -------------------------------------------------------------------------
    # Issuer operations
    # -------------------------------------------------------------------------

    @guarded
    def mint(self, sender: str, recipient: str, amount: int) -> None:
        self._require_owner(sender)
        self._commit(
            balances=credit(self._state.balances, recipient, amount),
            total_supply=self._state.total_supply + amount,
        )
        self._emit(Transfer, sender=ZERO_ADDRESS, recipient=recipient, value=amount)

    @guarded
    def burn(self, sender: str, amount: int) -> None:
        """Сжигание собственного баланса owner'а."""
        self._require_owner(sender)
        balances = debit(
            self._state.balances,
            sender,
            amount,
            f"{self.symbol}: burn amount exceeds balance",
            "burn_exceeds_balance",
        )
        self._commit(balances=balances, total_supply=self._state.total_supply - amount)
        self._emit(Transfer, sender=sender, recipient=ZERO_ADDRESS, value=amount)

    @guarded
    def set_restricted(self, sender: str, account: str, restricted: bool) -> None:
        self._require_owner(sender)
        current = [a for a in self._state.restricted if a != account]
        if restricted:
            current.append(account)
        self._commit(restricted=tuple(current))
        logger.info(f"{self.symbol}: {account} restricted={restricted}")
