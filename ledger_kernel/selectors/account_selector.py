"""
Module: ledger_kernel.selectors.account_selector
Responsibility: Read-only queries over the chart of accounts.
Architecture position: Kernel > Selectors.  May import from domain/, models/
    and selectors/base.py.

Invariants enforced:
    - Returns AccountInfo snapshots, never ORM rows.
    - list_active() is ordered by code; list_roots() and list_children() by
      sort_order then code.

Failure modes:
    - get()/get_by_code() return None for unknown ids or codes; callers
      decide whether that is an error.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.account_types import AccountType
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.models.account import Account
from ledger_kernel.selectors.base import BaseSelector


class AccountSelector(BaseSelector[Account]):
    """Chart-of-accounts read surface."""

    def get(self, account_id: UUID) -> AccountInfo | None:
        account = self.session.get(Account, account_id)
        return AccountInfo.from_model(account) if account is not None else None

    def get_by_code(self, code: str) -> AccountInfo | None:
        account = self.session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        return AccountInfo.from_model(account) if account is not None else None

    def get_many(self, account_ids: list[UUID]) -> dict[UUID, AccountInfo]:
        """Fetch several accounts in one query, keyed by id."""
        if not account_ids:
            return {}
        rows = self.session.execute(
            select(Account).where(Account.id.in_(account_ids))
        ).scalars()
        return {row.id: AccountInfo.from_model(row) for row in rows}

    def list_by_type(
        self,
        account_type: AccountType,
        active_only: bool = True,
    ) -> list[AccountInfo]:
        stmt = select(Account).where(
            Account.account_type == AccountType(account_type).value
        )
        if active_only:
            stmt = stmt.where(Account.is_active.is_(True))
        stmt = stmt.order_by(Account.code)
        return [AccountInfo.from_model(a) for a in self.session.execute(stmt).scalars()]

    def list_active(self) -> list[AccountInfo]:
        stmt = (
            select(Account)
            .where(Account.is_active.is_(True))
            .order_by(Account.code)
        )
        return [AccountInfo.from_model(a) for a in self.session.execute(stmt).scalars()]

    def list_all(self) -> list[AccountInfo]:
        stmt = select(Account).order_by(Account.code)
        return [AccountInfo.from_model(a) for a in self.session.execute(stmt).scalars()]

    def list_roots(self) -> list[AccountInfo]:
        stmt = (
            select(Account)
            .where(Account.parent_id.is_(None))
            .order_by(Account.sort_order, Account.code)
        )
        return [AccountInfo.from_model(a) for a in self.session.execute(stmt).scalars()]

    def list_children(self, account_id: UUID) -> list[AccountInfo]:
        stmt = (
            select(Account)
            .where(Account.parent_id == account_id)
            .order_by(Account.sort_order, Account.code)
        )
        return [AccountInfo.from_model(a) for a in self.session.execute(stmt).scalars()]

    def descendant_ids(self, account_id: UUID) -> list[UUID]:
        """
        Ids of every account below account_id in the hierarchy.

        Walks the parent map level by level; the account itself is not
        included.
        """
        pairs = self.session.execute(select(Account.id, Account.parent_id)).all()
        children: dict[UUID, list[UUID]] = {}
        for child_id, parent_id in pairs:
            if parent_id is not None:
                children.setdefault(parent_id, []).append(child_id)

        found: list[UUID] = []
        frontier = [account_id]
        while frontier:
            next_frontier = []
            for node in frontier:
                for child in children.get(node, []):
                    if child not in found:
                        found.append(child)
                        next_frontier.append(child)
            frontier = next_frontier
        return found
