"""
Example 01: Basic Ledger
========================

Demonstrates the simplest end-to-end usage of ContextLedger:
- Opening a ledger with open()
- Creating a context and appending a batch of messages
- Counting tokens with TokenEstimator before building a batch
- Paging through messages with next_cursor
- Selecting a token-budgeted window

Run:
    uv run python examples/01_basic_ledger.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path when running directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


async def main() -> None:
    from contextledger import ContextLedger, MessageInput, TokenEstimator

    print("=== contextledger Basic Example ===\n")

    estimator = TokenEstimator()
    turns = [
        ("system", "You are a helpful coding assistant. Be concise."),
        ("user", "What is Python's GIL?"),
        ("assistant", "A mutex that lets only one thread execute Python bytecode at a time."),
        ("user", "How does asyncio work at a high level?"),
        ("assistant", "A single-threaded event loop switches between coroutines at await points."),
    ]

    async with await ContextLedger.open(db_path="/tmp/contextledger_example_01.db") as ledger:
        ctx = await ledger.create_context("basic-example")
        print(f"Context created: {ctx.id}")

        batch = [
            MessageInput(role=role, content=text, token_count=estimator.count(text))
            for role, text in turns
        ]
        inserted = await ledger.append_messages(ctx.id, batch)
        print(f"Appended versions {inserted[0].version}..{inserted[-1].version}")

        ctx = await ledger.get_context(ctx.id)
        print(f"messages={ctx.message_count} tokens={ctx.total_tokens}\n")

        print("Pages of two:")
        cursor = None
        while True:
            page = await ledger.list_messages(ctx.id, cursor=cursor, limit=2)
            print(f"  {[m.version for m in page.data]}")
            if not page.has_more:
                break
            cursor = page.next_cursor

        window = await ledger.get_window(ctx.id, budget=30)
        print(f"\nWindow for 30 tokens: versions {[m.version for m in window]}")

        await ledger.soft_delete_context(ctx.id)
        print(f"After soft delete, get_context -> {await ledger.get_context(ctx.id)}")


if __name__ == "__main__":
    asyncio.run(main())
