import asyncio
import os
import sys

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

# Healthcheck: validate DB connectivity (SELECT 1) and that the slip provider
# is configured. Used as the container HEALTHCHECK command.
#
# You can skip the provider key check by setting HEALTHCHECK_SKIP_EASYSLIP=1
# (useful in staging where slips are verified against a stub).


async def _check_db() -> bool:
    db_url = os.getenv("DB_URL", "")
    if not db_url:
        return False
    try:
        engine = create_async_engine(db_url, pool_pre_ping=True)
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        finally:
            await engine.dispose()
        return True
    except Exception:
        return False


def main() -> int:
    ok_db = asyncio.run(_check_db())
    if not ok_db:
        print("db not ready", file=sys.stderr)
        return 1

    skip_slip = os.getenv("HEALTHCHECK_SKIP_EASYSLIP", "0").strip().lower() in {"1", "true", "yes", "on"}
    if not skip_slip and not os.getenv("EASYSLIP_API_KEY", "").strip():
        print("missing EASYSLIP_API_KEY", file=sys.stderr)
        return 1

    print("ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
