"""
Example 03: Transactions

This example demonstrates running several DAO calls in one transaction
with automatic rollback on errors.
"""

from dataclasses import dataclass

import sqlalchemy as sa

from row_dao import ConnectionConfig, EntityRegistry, ExecutionContext, GenericDao

metadata = sa.MetaData()

account = sa.Table(
    "account",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True),
    sa.Column("owner", sa.String(50), nullable=False),
    sa.Column("balance", sa.Integer, nullable=False),
)


@dataclass
class Account:
    id: int | None = None
    owner: str | None = None
    balance: int | None = None


def transfer(dao, source, target, amount):
    src, dst = dao.get(source), dao.get(target)
    if src.balance < amount:
        raise ValueError(f"{src.owner} cannot pay {amount}")
    dao.update_many(
        [
            Account(id=src.id, balance=src.balance - amount),
            Account(id=dst.id, balance=dst.balance + amount),
        ]
    )


def main():
    registry = EntityRegistry()
    registry.register(Account, account)

    context = ExecutionContext.from_config(ConnectionConfig(driver="sqlite", database=":memory:"))
    metadata.create_all(context.engine)
    dao = GenericDao(Account, context, registry=registry)
    dao.insert_many([Account(id=1, owner="Alice", balance=100), Account(id=2, owner="Bob", balance=20)])

    print("=== Transaction Management ===\n")

    # Example 1: Successful transaction
    print("1. Successful transfer:")
    with context.transaction() as tx:
        transfer(dao.bind(tx.context), 1, 2, 30)
        # Commits automatically on exit
    print(f"   balances: {[a.balance for a in dao.fetch(order_by=[account.c.id])]}\n")

    # Example 2: Failed transaction rolls back
    print("2. Failed transfer:")
    try:
        with context.transaction() as tx:
            bound = dao.bind(tx.context)
            bound.update(Account(id=2, balance=0))
            transfer(bound, 2, 1, 500)
    except ValueError as e:
        print(f"   rolled back: {e}")
    print(f"   balances: {[a.balance for a in dao.fetch(order_by=[account.c.id])]}")

    context.engine.dispose()


if __name__ == "__main__":
    main()
