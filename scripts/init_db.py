# scripts/init_db.py
import asyncio
import os

from vantera_ingest.db import async_session, engine
from vantera_ingest.models import Base
from vantera_ingest.service_layer.use_cases.cities import seed_cities


async def main() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print(f"OK: created tables {sorted(Base.metadata.tables)} (idempotent).")

    # SEED_CITIES=1 also upserts the preset cities (miami, marbella)
    if os.environ.get("SEED_CITIES") == "1":
        async with async_session() as session:
            outcome = await seed_cities(session)
        print(f"Seeded cities: {[c['slug'] for c in outcome.body['preview']]} run={outcome.body['runId']}")


if __name__ == "__main__":
    asyncio.run(main())
