"""
Token Ledger — чистые функции учёта балансов и allowances

Используются всеми компонентами с transferable-token семантикой
(collateral / stable asset и pool-share токен стабилизатора).
Функции не мутируют входные dict: возвращают новые копии для _commit.
"""

from typing import Dict, Final, Mapping

from src.core.errors import InsufficientFunds
from src.core.math.fixed_point import check_uint256

# Адрес-источник при эмиссии и адрес-получатель при сжигании (Transfer events)
ZERO_ADDRESS: Final[str] = "0x0"

Balances = Dict[str, int]
Allowances = Dict[str, Dict[str, int]]


def credit(balances: Mapping[str, int], account: str, amount: int) -> Balances:
    """Зачисление amount на account."""
    check_uint256(amount, "amount")
    updated = dict(balances)
    updated[account] = updated.get(account, 0) + amount
    return updated


def debit(
    balances: Mapping[str, int],
    account: str,
    amount: int,
    message: str,
    reason: str,
) -> Balances:
    """
    Списание amount с account.

    Raises:
        InsufficientFunds: Если баланс account меньше amount
    """
    check_uint256(amount, "amount")
    current = balances.get(account, 0)
    if amount > current:
        raise InsufficientFunds(message, reason=reason)
    updated = dict(balances)
    if current == amount:
        updated.pop(account, None)
    else:
        updated[account] = current - amount
    return updated


def move(
    balances: Mapping[str, int],
    sender: str,
    recipient: str,
    amount: int,
    message: str,
    reason: str,
) -> Balances:
    """Перевод amount от sender к recipient (debit, затем credit)."""
    return credit(debit(balances, sender, amount, message, reason), recipient, amount)


def allowance_of(allowances: Mapping[str, Mapping[str, int]], owner: str, spender: str) -> int:
    return allowances.get(owner, {}).get(spender, 0)


def set_allowance(
    allowances: Mapping[str, Mapping[str, int]], owner: str, spender: str, amount: int
) -> Allowances:
    check_uint256(amount, "amount")
    updated = {k: dict(v) for k, v in allowances.items()}
    owner_allowances = updated.setdefault(owner, {})
    if amount == 0:
        owner_allowances.pop(spender, None)
        if not owner_allowances:
            updated.pop(owner)
    else:
        owner_allowances[spender] = amount
    return updated


def spend_allowance(
    allowances: Mapping[str, Mapping[str, int]],
    owner: str,
    spender: str,
    amount: int,
    message: str,
    reason: str,
) -> Allowances:
    """
    Расход allowance spender'а на средства owner.

    Allowance требуется всегда, в том числе когда spender == owner.

    Raises:
        InsufficientFunds: Если allowance меньше amount
    """
    current = allowance_of(allowances, owner, spender)
    if amount > current:
        raise InsufficientFunds(message, reason=reason)
    return set_allowance(allowances, owner, spender, current - amount)
