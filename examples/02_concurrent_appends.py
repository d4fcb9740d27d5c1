"""
Example 02: Concurrent Appends
==============================

Demonstrates version assignment under concurrent writers:
- Two ledgers sharing one StorePool (shared connections and context locks)
- Many batches appended to the same context at once
- The resulting versions are gap-free and the counters match

Run:
    uv run python examples/02_concurrent_appends.py
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


async def main() -> None:
    from contextledger import ContextLedger, MessageInput, StorePool

    pool = StorePool()
    db_path = "/tmp/contextledger_example_02.db"
    writer_a = await ContextLedger.open(db_path=db_path, pool=pool)
    writer_b = await ContextLedger.open(db_path=db_path, pool=pool)

    try:
        ctx = await writer_a.create_context("concurrent-example")

        def batch(label: str, size: int) -> list[MessageInput]:
            return [
                MessageInput(role="user", content=f"{label}-{i}", token_count=3)
                for i in range(size)
            ]

        results = await asyncio.gather(
            *(
                (writer_a if i % 2 else writer_b).append_messages(ctx.id, batch(f"b{i}", 1 + i % 4))
                for i in range(20)
            )
        )

        versions = sorted(m.version for r in results for m in r)
        ctx = await writer_a.get_context(ctx.id)
        print(f"Appended {len(versions)} messages in {len(results)} batches")
        print(f"Versions gap-free: {versions == list(range(1, len(versions) + 1))}")
        print(f"latest_version={ctx.latest_version} total_tokens={ctx.total_tokens}")
    finally:
        await pool.close_all()


if __name__ == "__main__":
    asyncio.run(main())
