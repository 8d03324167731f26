"""
Example 02: Mapping a SQLite LEFT JOIN

This example demonstrates mapping dict rows fetched from a real database
with an explicit row schema, and how each NullIdStrategy treats the
null columns a LEFT JOIN produces.
"""

import sqlite3
from dataclasses import dataclass, field
from typing import Optional

from flat_graph import FlatGraphMapper, MappingError, NullIdStrategy, schema


@dataclass
class Order:
    """Order entity"""
    id: Optional[int] = None
    total: Optional[float] = None


@dataclass
class Customer:
    """Customer root entity with orders collection"""
    id: Optional[int] = None
    name: Optional[str] = None
    orders: list[Order] = field(default_factory=list)


CUSTOMER_ORDERS = (
    schema("customer_orders")
    .parent("customer_id", Customer, "id")
    .parent("customer_name", Customer, "name")
    .child("order_id", Order, "id", parent=Customer)
    .child("order_total", Order, "total", parent=Customer)
    .build()
)


def main():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript("""
        CREATE TABLE customers (id INTEGER PRIMARY KEY, name TEXT NOT NULL);
        CREATE TABLE orders (id INTEGER PRIMARY KEY, customer_id INTEGER NOT NULL, total REAL NOT NULL);
        INSERT INTO customers VALUES (1, 'Alice'), (2, 'Bob');
        INSERT INTO orders VALUES (10, 1, 100.50), (11, 1, 50.25);
    """)

    rows = [
        dict(row)
        for row in conn.execute("""
            SELECT c.id AS customer_id, c.name AS customer_name,
                   o.id AS order_id, o.total AS order_total
            FROM customers c
            LEFT JOIN orders o ON o.customer_id = c.id
            ORDER BY c.id, o.id
        """)
    ]
    conn.close()

    for strategy in NullIdStrategy:
        print(f"=== {strategy.name} ===")
        try:
            customers = FlatGraphMapper.map(rows, CUSTOMER_ORDERS, strategy)
        except MappingError as e:
            print(f"  error: {e}\n")
            continue
        for customer in customers:
            orders = ", ".join(f"#{o.id}" for o in customer.orders) or "(none)"
            print(f"  {customer.name}: {orders}")
        print()


if __name__ == "__main__":
    main()
