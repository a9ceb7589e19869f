"""
Ledger/Transaction Store

CRUD and query operations over ledgers and transactions with permission
enforcement and cascade rules.

DESIGN DECISION: Every operation takes the request context explicitly.
The store never looks up "the current user" anywhere else.

GATES:
- Reads (get_ledger, list_ledger_transactions): any role but NONE
- Permission replacement: ledger owner or platform admin
- Every other mutation: platform admin only

FAILURES:
- NotFoundError        missing ledger or transaction
- AccessDeniedError    insufficient role (also audited)
- LedgerValidationError unknown owner, empty or malformed payloads
- ServerError          any storage failure, after it is audited
"""

from collections.abc import Awaitable, Iterable
from typing import Optional, TypeVar

from src.audit import AuditLogger
from src.balance import summarize, with_balances
from src.errors import (
    AccessDeniedError,
    LedgerValidationError,
    NotFoundError,
    ServerError,
)
from src.ledgers.formatting import format_currency, format_date
from src.models.audit import AuditEventBuilder, AuditEventType
from src.models.ledger import (
    BalancedTransaction,
    Currency,
    Ledger,
    LedgerCreate,
    LedgerDetail,
    LedgerId,
    LedgerRole,
    LedgerSummary,
    LedgerUpdate,
    PermissionEntry,
    PermissionGrant,
    RequestContext,
    Transaction,
    TransactionCreate,
    TransactionId,
    TransactionUpdate,
    UserId,
)
from src.permissions import (
    EffectiveRole,
    can_manage_permissions,
    can_mutate,
    ledger_admin_user_ids,
    resolve_role,
)
from src.services.storage import (
    LedgerStorageInterface,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)


T = TypeVar("T")


class LedgerStore:
    """
    Ledger and transaction operations for one deployment.

    Usage:
        store = LedgerStore(users, ledgers, transactions, audit_logger)
        detail = await store.get_ledger(ctx, ledger_id)
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        ledger_storage: LedgerStorageInterface,
        transaction_storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        default_currency: Currency = Currency.USD,
    ):
        self._users = user_storage
        self._ledgers = ledger_storage
        self._transactions = transaction_storage
        self._audit = audit_logger or AuditLogger()
        self._default_currency = default_currency

    # =========================================================================
    # Internal helpers
    # =========================================================================

    async def _storage(self, action: str, call: Awaitable[T], ctx: RequestContext) -> T:
        """Await a storage call, converting StorageError into ServerError."""
        try:
            return await call
        except StorageError as e:
            await self._audit.log_error(
                error_type="storage_error",
                error_message=str(e),
                details={"action": action},
                actor_id=ctx.user_id,
            )
            raise ServerError(f"Storage failure during {action}") from e

    async def _deny(
        self,
        ctx: RequestContext,
        entity_type: str,
        entity_id,
        action: str,
        message: str = "Access denied",
    ) -> None:
        await self._audit.log_access_denied(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=ctx.user_id,
        )
        raise AccessDeniedError(message)

    async def _require_mutation(
        self,
        ctx: RequestContext,
        entity_type: str,
        entity_id,
        action: str,
    ) -> None:
        if not can_mutate(ctx):
            await self._deny(ctx, entity_type, entity_id, action)

    async def _load_ledger(self, ctx: RequestContext, ledger_id: LedgerId) -> Ledger:
        ledger = await self._storage(
            "get_ledger", self._ledgers.get_ledger_by_id(ledger_id), ctx
        )
        if ledger is None:
            raise NotFoundError("ledger", ledger_id)
        return ledger

    async def _load_readable_ledger(
        self,
        ctx: RequestContext,
        ledger_id: LedgerId,
        action: str,
    ) -> Ledger:
        ledger = await self._load_ledger(ctx, ledger_id)
        if resolve_role(ctx, ledger) == EffectiveRole.NONE:
            await self._deny(ctx, "ledger", ledger_id, action)
        return ledger

    async def _load_transaction(
        self,
        ctx: RequestContext,
        transaction_id: TransactionId,
    ) -> Transaction:
        transaction = await self._storage(
            "get_transaction",
            self._transactions.get_transaction_by_id(transaction_id),
            ctx,
        )
        if transaction is None:
            raise NotFoundError("transaction", transaction_id)
        return transaction

    async def _require_user(self, ctx: RequestContext, user_id: UserId) -> None:
        user = await self._storage("get_user", self._users.get_user_by_id(user_id), ctx)
        if user is None:
            raise LedgerValidationError("Invalid owner ID")

    async def _build_permissions(
        self,
        ctx: RequestContext,
        grants: Iterable[PermissionGrant],
    ) -> tuple[list[PermissionEntry], int]:
        """
        Turn requested grants into stored entries.

        Duplicate users collapse to the last requested role. Grants for
        users that do not exist are dropped.

        Returns:
            (entries, number of dropped grants)
        """
        requested: dict[UserId, LedgerRole] = {}
        for grant in grants:
            requested[grant.user] = grant.role

        known = await self._storage(
            "get_users", self._users.get_users_by_ids(set(requested)), ctx
        )

        entries = [
            PermissionEntry(user=user_id, role=role, added_by=ctx.user_id)
            for user_id, role in requested.items()
            if user_id in known
        ]
        return entries, len(requested) - len(entries)

    @staticmethod
    def _with_owner_admin(
        entries: list[PermissionEntry],
        owner: UserId,
        added_by: UserId,
    ) -> list[PermissionEntry]:
        """Ensure the owner holds exactly one admin entry."""
        for entry in entries:
            if entry.user == owner:
                entry.role = LedgerRole.ADMIN
                return entries
        entries.append(PermissionEntry(user=owner, role=LedgerRole.ADMIN, added_by=added_by))
        return entries

    async def _balanced(self, ctx: RequestContext, ledger_id: LedgerId) -> list[BalancedTransaction]:
        transactions = await self._storage(
            "list_transactions", self._transactions.list_transactions(ledger_id), ctx
        )
        return with_balances(transactions)

    # =========================================================================
    # Ledger reads
    # =========================================================================

    async def list_ledgers_for_user(self, ctx: RequestContext) -> list[LedgerSummary]:
        """
        Ledgers visible to the caller, owners populated.

        Platform admins see every ledger; everyone else sees ledgers they
        own or hold a permission entry on.
        """
        if ctx.is_platform_admin:
            ledgers = await self._storage("list_ledgers", self._ledgers.list_ledgers(), ctx)
        else:
            ledgers = await self._storage(
                "list_ledgers", self._ledgers.list_ledgers_for_user(ctx.user_id), ctx
            )

        owners = await self._storage(
            "get_users",
            self._users.get_users_by_ids({ledger.owner for ledger in ledgers}),
            ctx,
        )

        return [
            LedgerSummary(
                ledger=ledger,
                owner=owners[ledger.owner].to_info() if ledger.owner in owners else None,
            )
            for ledger in ledgers
        ]

    async def get_ledger(self, ctx: RequestContext, ledger_id: LedgerId) -> LedgerDetail:
        """A ledger with its owner, balanced transactions and summary."""
        ledger = await self._load_readable_ledger(ctx, ledger_id, "read")

        owner = await self._storage("get_user", self._users.get_user_by_id(ledger.owner), ctx)
        balanced = await self._balanced(ctx, ledger_id)

        return LedgerDetail(
            ledger=ledger,
            owner=owner.to_info() if owner else None,
            transactions=balanced,
            summary=summarize(balanced),
            admin_ids=ledger_admin_user_ids(ledger),
        )

    async def list_ledger_transactions(
        self,
        ctx: RequestContext,
        ledger_id: LedgerId,
    ) -> list[BalancedTransaction]:
        """Balanced transactions of a ledger, same gate as get_ledger."""
        await self._load_readable_ledger(ctx, ledger_id, "list_transactions")
        return await self._balanced(ctx, ledger_id)

    # =========================================================================
    # Ledger mutations
    # =========================================================================

    async def create_ledger(self, ctx: RequestContext, payload: LedgerCreate) -> Ledger:
        """
        Create a ledger for an existing owner.

        The owner always ends up with an admin permission entry.
        """
        await self._require_mutation(ctx, "ledger", None, "create_ledger")
        await self._require_user(ctx, payload.owner_id)

        entries, dropped = await self._build_permissions(ctx, payload.permissions)
        entries = self._with_owner_admin(entries, payload.owner_id, ctx.user_id)

        ledger = Ledger(
            name=payload.name,
            owner=payload.owner_id,
            currency=payload.currency or self._default_currency,
            description=payload.description,
            permissions=entries,
            created_by=ctx.user_id,
        )

        await self._storage("create_ledger", self._ledgers.save_ledger(ledger), ctx)

        await self._audit.log(AuditEventBuilder.ledger_created(
            ledger_id=ledger.id,
            name=ledger.name,
            owner_id=ledger.owner,
            actor_id=ctx.user_id,
        ))
        if dropped:
            await self._audit.log(AuditEventBuilder.permissions_updated(
                ledger_id=ledger.id,
                granted=len(entries),
                dropped=dropped,
                actor_id=ctx.user_id,
            ))

        return ledger

    async def update_ledger(
        self,
        ctx: RequestContext,
        ledger_id: LedgerId,
        fields: LedgerUpdate,
    ) -> Ledger:
        """
        Apply a partial update.

        Only fields present in the payload change. A supplied permissions
        list replaces the current one; the owner's admin entry is not
        re-added here.
        """
        await self._require_mutation(ctx, "ledger", ledger_id, "update_ledger")
        ledger = await self._load_ledger(ctx, ledger_id)

        present = fields.model_fields_set
        changed = []

        if "name" in present and fields.name:
            ledger.name = fields.name
            changed.append("name")

        if "owner_id" in present and fields.owner_id is not None:
            await self._require_user(ctx, fields.owner_id)
            ledger.owner = fields.owner_id
            changed.append("owner")

        if "currency" in present and fields.currency is not None:
            ledger.currency = fields.currency
            changed.append("currency")

        if "description" in present:
            ledger.description = fields.description
            changed.append("description")

        if "permissions" in present and fields.permissions is not None:
            ledger.permissions, _ = await self._build_permissions(ctx, fields.permissions)
            changed.append("permissions")

        # Re-run validation on the mutated model
        ledger = Ledger.model_validate(ledger.model_dump())

        await self._storage("update_ledger", self._ledgers.update_ledger(ledger), ctx)
        await self._audit.log(AuditEventBuilder.ledger_updated(
            ledger_id=ledger.id,
            fields=changed,
            actor_id=ctx.user_id,
        ))
        return ledger

    async def update_ledger_permissions(
        self,
        ctx: RequestContext,
        ledger_id: LedgerId,
        permissions: list[PermissionGrant],
    ) -> Ledger:
        """
        Replace a ledger's permission list.

        Allowed for the ledger owner and platform admins. On denial the
        stored list is left untouched.
        """
        ledger = await self._load_ledger(ctx, ledger_id)

        if not can_manage_permissions(ctx, ledger):
            await self._deny(
                ctx,
                "ledger",
                ledger_id,
                "update_permissions",
                message="Only the owner or admin can update permissions",
            )

        entries, dropped = await self._build_permissions(ctx, permissions)
        ledger.permissions = entries

        await self._storage("update_permissions", self._ledgers.update_ledger(ledger), ctx)
        await self._audit.log(AuditEventBuilder.permissions_updated(
            ledger_id=ledger.id,
            granted=len(entries),
            dropped=dropped,
            actor_id=ctx.user_id,
        ))
        return ledger

    async def delete_ledger(self, ctx: RequestContext, ledger_id: LedgerId) -> int:
        """
        Delete a ledger and all of its transactions.

        Transactions go first, then the ledger.

        Returns:
            Number of transactions removed
        """
        await self._require_mutation(ctx, "ledger", ledger_id, "delete_ledger")
        await self._load_ledger(ctx, ledger_id)

        removed = await self._storage(
            "delete_ledger",
            self._transactions.delete_transactions_for_ledger(ledger_id),
            ctx,
        )
        await self._storage("delete_ledger", self._ledgers.delete_ledger(ledger_id), ctx)

        await self._audit.log(AuditEventBuilder.ledger_deleted(
            ledger_id=ledger_id,
            transactions_deleted=removed,
            actor_id=ctx.user_id,
        ))
        return removed

    # =========================================================================
    # Transactions
    # =========================================================================

    async def create_transaction(
        self,
        ctx: RequestContext,
        payload: TransactionCreate,
    ) -> Transaction:
        await self._require_mutation(ctx, "ledger", payload.ledger_id, "create_transaction")
        ledger = await self._load_ledger(ctx, payload.ledger_id)

        transaction = Transaction(
            ledger_id=payload.ledger_id,
            date=payload.date,
            description=payload.description,
            amount=payload.amount,
            created_by=ctx.user_id,
        )
        summary = (
            f"{format_date(transaction.date)} {transaction.description} "
            f"{format_currency(transaction.amount, ledger.currency)}"
        )
        await self._storage(
            "create_transaction", self._transactions.save_transaction(transaction), ctx
        )

        await self._audit.log_transaction_changed(
            event_type=AuditEventType.TRANSACTION_CREATED,
            transaction_id=transaction.id,
            ledger_id=ledger.id,
            summary=summary,
            actor_id=ctx.user_id,
        )
        return transaction

    async def update_transaction(
        self,
        ctx: RequestContext,
        transaction_id: TransactionId,
        fields: TransactionUpdate,
    ) -> Transaction:
        """Partial update of date, description and amount."""
        await self._require_mutation(ctx, "transaction", transaction_id, "update_transaction")
        transaction = await self._load_transaction(ctx, transaction_id)

        changes = fields.model_dump(exclude_unset=True, exclude_none=True)
        transaction = Transaction.model_validate({**transaction.model_dump(), **changes})

        await self._storage(
            "update_transaction", self._transactions.update_transaction(transaction), ctx
        )
        await self._audit.log_transaction_changed(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            transaction_id=transaction.id,
            ledger_id=transaction.ledger_id,
            summary=f"Transaction updated: {', '.join(sorted(changes)) or 'no fields'}",
            actor_id=ctx.user_id,
        )
        return transaction

    async def delete_transaction(
        self,
        ctx: RequestContext,
        transaction_id: TransactionId,
    ) -> None:
        await self._require_mutation(ctx, "transaction", transaction_id, "delete_transaction")
        transaction = await self._load_transaction(ctx, transaction_id)

        await self._storage(
            "delete_transaction", self._transactions.delete_transaction(transaction_id), ctx
        )
        await self._audit.log_transaction_changed(
            event_type=AuditEventType.TRANSACTION_DELETED,
            transaction_id=transaction_id,
            ledger_id=transaction.ledger_id,
            summary=f"Transaction deleted: {transaction.description}",
            actor_id=ctx.user_id,
        )

    async def ledger_for_import(self, ctx: RequestContext, ledger_id: LedgerId) -> Ledger:
        """Gate and load the target ledger of a bulk import before any parsing."""
        await self._require_mutation(ctx, "ledger", ledger_id, "bulk_create_transactions")
        return await self._load_ledger(ctx, ledger_id)

    async def bulk_create_transactions(
        self,
        ctx: RequestContext,
        ledger_id: LedgerId,
        payloads: list[TransactionCreate],
    ) -> int:
        """
        Insert many transactions into one ledger with a single batch write.

        Every payload is stamped with `ledger_id`. The returned count comes
        from storage and is the number actually written.
        """
        await self._require_mutation(ctx, "ledger", ledger_id, "bulk_create_transactions")
        await self._load_ledger(ctx, ledger_id)

        if not payloads:
            raise LedgerValidationError("No transactions to import")

        transactions = [
            Transaction(
                ledger_id=ledger_id,
                date=payload.date,
                description=payload.description,
                amount=payload.amount,
                created_by=ctx.user_id,
            )
            for payload in payloads
        ]

        written = await self._storage(
            "bulk_create_transactions",
            self._transactions.save_transactions(transactions),
            ctx,
        )
        await self._audit.log(AuditEventBuilder.transactions_imported(
            ledger_id=ledger_id,
            count=written,
            actor_id=ctx.user_id,
        ))
        return written

    async def count_transactions(self, ledger_id: LedgerId) -> int:
        try:
            return await self._transactions.count_transactions(ledger_id)
        except StorageError as e:
            raise ServerError("Storage failure during count_transactions") from e
