from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

import asyncpg

from groupsplit.db.models import (
    Budget,
    BudgetPeriod,
    Expense,
    Group,
    Participant,
    ParticipantRole,
    Payment,
    PaymentStatus,
    SplitDetail,
)
from groupsplit.logging import get_logger, sql_logger


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg expects a plain postgresql/postgres scheme, without "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetch", query=query, args=args)
        return await self._pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchrow", query=query, args=args)
        return await self._pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchval", query=query, args=args)
        return await self._pool.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query, args=args)
        return await self._pool.execute(query, *args)

    async def executemany(self, command: str, args: Iterable[Iterable[Any]]) -> None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.executemany", query=command)
        await self._pool.executemany(command, args)

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


def _participant_from_row(row: Mapping[str, Any]) -> Participant:
    return Participant(user_id=row["user_id"], role=ParticipantRole(row["role"]))


def _expense_from_row(row: Mapping[str, Any], splits: Sequence[SplitDetail] = ()) -> Expense:
    return Expense(
        id=row["id"],
        group_id=row["group_id"],
        payer_id=row["payer_id"],
        amount=Decimal(row["amount"]),
        date=row["date"],
        description=row.get("description") or "",
        budget_id=row.get("budget_id"),
        split_details=tuple(splits),
    )


def _payment_from_row(row: Mapping[str, Any]) -> Payment:
    return Payment(
        id=row["id"],
        group_id=row["group_id"],
        from_user_id=row["from_user_id"],
        to_user_id=row["to_user_id"],
        amount=Decimal(row["amount"]),
        status=PaymentStatus(row["status"]),
        method=row.get("method"),
        note=row.get("note"),
        approved_by=row.get("approved_by"),
        approved_at=row.get("approved_at"),
    )


def _budget_from_row(row: Mapping[str, Any]) -> Budget:
    return Budget(
        id=row["id"],
        group_id=row["group_id"],
        category=row["category"],
        limit=Decimal(row["limit_amount"]),
        spent=Decimal(row["spent"]),
        period=BudgetPeriod(row["period"]),
        start_date=row.get("start_date"),
        end_date=row.get("end_date"),
    )


class GroupSplitRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def ensure_user(self, tg_id: int, username: Optional[str], full_name: Optional[str]) -> int:
        row = await self.db.fetchrow(
            """
            INSERT INTO users (tg_id, username, full_name)
            VALUES ($1, $2, $3)
            ON CONFLICT (tg_id) DO UPDATE
                SET username = EXCLUDED.username,
                    full_name = EXCLUDED.full_name
            RETURNING id
            """,
            tg_id,
            username,
            full_name,
        )
        assert row is not None
        return int(row["id"])

    async def get_user_by_username(self, username: str) -> asyncpg.Record | None:
        clean = username.lstrip("@")
        return await self.db.fetchrow("SELECT * FROM users WHERE lower(username) = lower($1)", clean)

    async def get_display_names(self, user_ids: Iterable[int]) -> dict[int, str]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        rows = await self.db.fetch(
            "SELECT id, username, full_name FROM users WHERE id = ANY($1::bigint[])",
            ids,
        )
        names: dict[int, str] = {}
        for row in rows:
            if row["username"]:
                names[row["id"]] = f"@{row['username']}"
            elif row["full_name"]:
                names[row["id"]] = row["full_name"]
        return names

    # groups

    async def create_group(self, owner_id: int, name: str, description: Optional[str]) -> int:
        row = await self.db.fetchrow(
            """
            INSERT INTO groups (name, description)
            VALUES ($1, $2)
            RETURNING id
            """,
            name,
            description,
        )
        assert row is not None
        group_id = int(row["id"])
        await self.add_participant(group_id, owner_id, ParticipantRole.ADMIN)
        return group_id

    async def add_participant(
        self,
        group_id: int,
        user_id: int,
        role: ParticipantRole = ParticipantRole.MEMBER,
    ) -> None:
        await self.db.execute(
            """
            INSERT INTO group_participants (group_id, user_id, role)
            VALUES ($1, $2, $3)
            ON CONFLICT (group_id, user_id) DO NOTHING
            """,
            group_id,
            user_id,
            role.value,
        )

    async def get_group(self, group_id: int) -> Group | None:
        row = await self.db.fetchrow(
            "SELECT * FROM groups WHERE id = $1 AND deleted_at IS NULL",
            group_id,
        )
        if row is None:
            return None
        participants = await self.db.fetch(
            """
            SELECT user_id, role
            FROM group_participants
            WHERE group_id = $1
            ORDER BY joined_at, user_id
            """,
            group_id,
        )
        return Group(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            participants=tuple(_participant_from_row(p) for p in participants),
        )

    async def list_user_groups(self, user_id: int) -> list[asyncpg.Record]:
        return await self.db.fetch(
            """
            SELECT g.id, g.name, gp.role
            FROM groups g
            JOIN group_participants gp ON gp.group_id = g.id
            WHERE gp.user_id = $1 AND g.deleted_at IS NULL
            ORDER BY g.id
            """,
            user_id,
        )

    async def delete_group(self, group_id: int) -> None:
        await self.db.execute(
            "UPDATE groups SET deleted_at = now() WHERE id = $1 AND deleted_at IS NULL",
            group_id,
        )

    async def remove_participant(self, group_id: int, user_id: int) -> bool:
        status = await self.db.execute(
            "DELETE FROM group_participants WHERE group_id = $1 AND user_id = $2",
            group_id,
            user_id,
        )
        return status != "DELETE 0"

    async def count_group_admins(self, group_id: int) -> int:
        count = await self.db.fetchval(
            "SELECT count(*) FROM group_participants WHERE group_id = $1 AND role = 'admin'",
            group_id,
        )
        return int(count or 0)

    # expenses

    async def create_expense(
        self,
        group_id: int,
        payer_id: int,
        amount: Decimal,
        description: str,
        *,
        spent_at: Optional[datetime] = None,
        budget_id: Optional[int] = None,
        split_details: Sequence[SplitDetail] = (),
    ) -> Expense:
        row = await self.db.fetchrow(
            """
            INSERT INTO expenses (group_id, payer_id, amount, description, budget_id, date)
            VALUES ($1, $2, $3, $4, $5, COALESCE($6, now()))
            RETURNING *
            """,
            group_id,
            payer_id,
            amount,
            description,
            budget_id,
            spent_at,
        )
        assert row is not None
        if split_details:
            await self.db.executemany(
                """
                INSERT INTO expense_splits (expense_id, user_id, amount_assigned)
                VALUES ($1, $2, $3)
                """,
                ((row["id"], detail.user_id, detail.amount_assigned) for detail in split_details),
            )
        return _expense_from_row(row, split_details)

    async def get_expense(self, expense_id: int) -> asyncpg.Record | None:
        return await self.db.fetchrow(
            "SELECT * FROM expenses WHERE id = $1 AND deleted_at IS NULL",
            expense_id,
        )

    async def list_group_expenses(self, group_id: int) -> list[Expense]:
        rows = await self.db.fetch(
            """
            SELECT *
            FROM expenses
            WHERE group_id = $1 AND deleted_at IS NULL
            ORDER BY date, id
            """,
            group_id,
        )
        if not rows:
            return []

        split_rows = await self.db.fetch(
            """
            SELECT es.expense_id, es.user_id, es.amount_assigned
            FROM expense_splits es
            JOIN expenses e ON e.id = es.expense_id
            WHERE e.group_id = $1 AND e.deleted_at IS NULL
            ORDER BY es.expense_id, es.id
            """,
            group_id,
        )
        splits: dict[int, list[SplitDetail]] = defaultdict(list)
        for split in split_rows:
            splits[split["expense_id"]].append(
                SplitDetail(user_id=split["user_id"], amount_assigned=Decimal(split["amount_assigned"]))
            )

        return [_expense_from_row(row, splits.get(row["id"], ())) for row in rows]

    async def delete_expense(self, expense_id: int) -> None:
        await self.db.execute("UPDATE expenses SET deleted_at = now() WHERE id = $1", expense_id)

    # payments

    async def create_payment(
        self,
        group_id: int,
        from_user_id: int,
        to_user_id: int,
        amount: Decimal,
        method: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Payment:
        row = await self.db.fetchrow(
            """
            INSERT INTO payments (group_id, from_user_id, to_user_id, amount, method, note)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
            """,
            group_id,
            from_user_id,
            to_user_id,
            amount,
            method,
            note,
        )
        assert row is not None
        return _payment_from_row(row)

    async def get_payment(self, payment_id: int) -> Payment | None:
        row = await self.db.fetchrow("SELECT * FROM payments WHERE id = $1", payment_id)
        if row is None:
            return None
        return _payment_from_row(row)

    async def list_group_payments(self, group_id: int) -> list[Payment]:
        rows = await self.db.fetch(
            "SELECT * FROM payments WHERE group_id = $1 ORDER BY created_at, id",
            group_id,
        )
        return [_payment_from_row(row) for row in rows]

    async def set_payment_status(
        self,
        payment_id: int,
        status: PaymentStatus,
        approved_by: Optional[int] = None,
    ) -> None:
        await self.db.execute(
            """
            UPDATE payments
            SET status = $1,
                approved_by = $2,
                approved_at = CASE WHEN $2::bigint IS NULL THEN NULL ELSE now() END,
                updated_at = now()
            WHERE id = $3
            """,
            status.value,
            approved_by,
            payment_id,
        )

    # budgets

    async def create_budget(
        self,
        group_id: int,
        category: str,
        limit: Decimal,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Budget:
        row = await self.db.fetchrow(
            """
            INSERT INTO budgets (group_id, category, limit_amount, period, start_date, end_date)
            VALUES ($1, $2, $3, $4, COALESCE($5, CURRENT_DATE), $6)
            RETURNING *
            """,
            group_id,
            category,
            limit,
            period.value,
            start_date,
            end_date,
        )
        assert row is not None
        return _budget_from_row(row)

    async def get_budget(self, budget_id: int) -> Budget | None:
        row = await self.db.fetchrow("SELECT * FROM budgets WHERE id = $1", budget_id)
        if row is None:
            return None
        return _budget_from_row(row)

    async def list_group_budgets(self, group_id: int) -> list[Budget]:
        rows = await self.db.fetch(
            "SELECT * FROM budgets WHERE group_id = $1 ORDER BY id",
            group_id,
        )
        return [_budget_from_row(row) for row in rows]

    async def set_budget_spent(self, budget_id: int, spent: Decimal) -> None:
        await self.db.execute(
            "UPDATE budgets SET spent = $1, updated_at = now() WHERE id = $2",
            spent,
            budget_id,
        )

    async def update_budget(
        self,
        budget_id: int,
        limit: Decimal,
        period: Optional[BudgetPeriod] = None,
    ) -> Budget | None:
        row = await self.db.fetchrow(
            """
            UPDATE budgets
            SET limit_amount = $1,
                period = COALESCE($2, period),
                updated_at = now()
            WHERE id = $3
            RETURNING *
            """,
            limit,
            period.value if period else None,
            budget_id,
        )
        if row is None:
            return None
        return _budget_from_row(row)

    async def delete_budget(self, budget_id: int) -> None:
        await self.db.execute("DELETE FROM budgets WHERE id = $1", budget_id)
