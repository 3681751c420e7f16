import asyncio
import os
import sys

from sqlalchemy import select

sys.path.append(os.path.dirname(__file__))

from volleyscore import db  # noqa: E402
from volleyscore.models import Tournament  # noqa: E402

# id, name, set format, regular set target, final set target
TOURNAMENTS = [
    ("indoor-best-of-5", "Indoor league (best of 5)", 5, 25, 15),
    ("indoor-best-of-3", "Indoor cup (best of 3)", 3, 25, 15),
    ("beach-best-of-3", "Beach series (best of 3)", 3, 21, 15),
    ("single-set", "Single set scrimmage", 1, 25, 15),
]


async def main():
    await db.create_schema()
    async with db.AsyncSessionLocal() as s:
        have = {
            x.id for x in (await s.execute(select(Tournament))).scalars().all()
        }
        for tid, name, set_format, regular, final in TOURNAMENTS:
            if tid not in have:
                s.add(
                    Tournament(
                        id=tid,
                        name=name,
                        set_format=set_format,
                        regular_set_points=regular,
                        final_set_points=final,
                    )
                )
        await s.commit()
    await db.engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
