"""
ChartService -- chart-of-accounts maintenance.

Responsibility:
    Creates accounts, soft-deactivates them, and loads a chart from seed
    definitions (the packaged standard chart or a deployment's own).

Architecture position:
    Kernel > Services -- imperative shell.
    Called by bootstrap code, administrative callers and tests.

Invariants enforced:
    - Account codes are unique.
    - level = parent.level + 1 (0 for roots); parents are resolved by code.
    - current_balance starts equal to opening_balance.  After creation it is
      moved only by posting; seeding never rewrites it.
    - Accounts are never deleted; deactivate_account() sets is_active=False.
    - Currency codes are validated against ISO 4217.

Failure modes:
    - DuplicateAccountCodeError: code already exists (create_account).
    - AccountNotFoundError: unknown parent code or account id.
    - InvalidCurrencyError: bad currency code.

Audit relevance:
    account_created / account_deactivated / chart_seeded are logged with the
    acting user.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import ZERO, to_money, validate_currency
from ledger_kernel.domain.account_types import AccountType
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.exceptions import AccountNotFoundError, DuplicateAccountCodeError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.services.base import BaseService

logger = get_logger("services.chart")


@dataclass(frozen=True)
class AccountSeed:
    """
    One account definition in a chart seed.

    parent_code refers to another seed (or an existing account) by code.
    """

    code: str
    name: str
    account_type: AccountType
    parent_code: str | None = None
    description: str | None = None
    sort_order: int = 0
    is_system: bool = True
    opening_balance: Decimal = ZERO
    currency: str = "USD"

    def __post_init__(self) -> None:
        object.__setattr__(self, "account_type", AccountType(self.account_type))
        object.__setattr__(self, "opening_balance", to_money(self.opening_balance))


@dataclass(frozen=True)
class SeedResult:
    created: tuple[str, ...]
    updated: tuple[str, ...]


class ChartService(BaseService[Account]):
    """
    Chart-of-accounts write surface.

    Contract:
        Returns AccountInfo DTOs.  Flush-only.
    """

    def _by_code(self, code: str) -> Account | None:
        return self.session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        actor_id: UUID,
        parent_code: str | None = None,
        description: str | None = None,
        opening_balance: Decimal | int | str = ZERO,
        currency: str = "USD",
        sort_order: int = 0,
        is_system: bool = False,
    ) -> AccountInfo:
        """
        Create one account.

        Raises:
            DuplicateAccountCodeError: If the code is taken.
            AccountNotFoundError: If parent_code does not exist.
            InvalidCurrencyError: If currency is not ISO 4217.
        """
        if self._by_code(code) is not None:
            raise DuplicateAccountCodeError(code)

        parent = None
        if parent_code is not None:
            parent = self._by_code(parent_code)
            if parent is None:
                raise AccountNotFoundError(parent_code)

        opening = to_money(opening_balance)
        account = Account(
            code=code,
            name=name,
            description=description,
            account_type=AccountType(account_type).value,
            parent_id=parent.id if parent is not None else None,
            level=parent.level + 1 if parent is not None else 0,
            is_active=True,
            is_system=is_system,
            opening_balance=opening,
            current_balance=opening,
            currency=validate_currency(currency),
            sort_order=sort_order,
            created_by_id=actor_id,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "account_code": code,
                "account_type": account.account_type,
                "actor_id": str(actor_id),
            },
        )
        return AccountInfo.from_model(account)

    def deactivate_account(self, account_id: UUID, actor_id: UUID) -> AccountInfo:
        """
        Soft-remove an account.  Existing lines and balances are untouched;
        new entries may no longer reference it.
        """
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))

        account.is_active = False
        account.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "account_deactivated",
            extra={"account_code": account.code, "actor_id": str(actor_id)},
        )
        return AccountInfo.from_model(account)

    def seed_chart(self, seeds: Iterable[AccountSeed], actor_id: UUID) -> SeedResult:
        """
        Update-or-create accounts by code.

        Seeds may arrive in any order; parents are placed before children.
        Existing accounts get their descriptive fields refreshed, but their
        balances and type are left alone.

        Raises:
            AccountNotFoundError: If a parent_code matches neither a seed nor
                an existing account.
        """
        pending = list(seeds)
        created: list[str] = []
        updated: list[str] = []

        with self.session.begin_nested():
            while pending:
                progressed = False
                remaining: list[AccountSeed] = []
                for seed in pending:
                    parent = None
                    if seed.parent_code is not None:
                        parent = self._by_code(seed.parent_code)
                        if parent is None:
                            remaining.append(seed)
                            continue

                    existing = self._by_code(seed.code)
                    if existing is None:
                        self.create_account(
                            code=seed.code,
                            name=seed.name,
                            account_type=seed.account_type,
                            actor_id=actor_id,
                            parent_code=seed.parent_code,
                            description=seed.description,
                            opening_balance=seed.opening_balance,
                            currency=seed.currency,
                            sort_order=seed.sort_order,
                            is_system=seed.is_system,
                        )
                        created.append(seed.code)
                    else:
                        existing.name = seed.name
                        existing.description = seed.description
                        existing.sort_order = seed.sort_order
                        existing.is_system = seed.is_system
                        existing.parent_id = parent.id if parent is not None else None
                        existing.level = parent.level + 1 if parent is not None else 0
                        existing.updated_by_id = actor_id
                        self.session.flush()
                        updated.append(seed.code)
                    progressed = True

                if not progressed:
                    raise AccountNotFoundError(remaining[0].parent_code)
                pending = remaining

        logger.info(
            "chart_seeded",
            extra={
                "created_count": len(created),
                "updated_count": len(updated),
                "actor_id": str(actor_id),
            },
        )
        return SeedResult(created=tuple(created), updated=tuple(updated))
