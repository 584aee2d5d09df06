# scripts/generate_return.py
"""
Generate a stored GSTR-1 or GSTR-3B for one business and period.

    python scripts/generate_return.py gstr3b <business_id> 2026-01 [--out file.json]
"""

import asyncio
import os
import sys

from loguru import logger

CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from gstfiling.core.db import engine, get_db  # noqa: E402
from gstfiling.core.logging_config import setup_logging  # noqa: E402
from gstfiling.domain.errors import GSTError  # noqa: E402
from gstfiling.domain.models.gst import ReturnType  # noqa: E402
from gstfiling.domain.services.gst_returns import (  # noqa: E402
    GstReturnService,
    export_return_json,
)


async def generate(return_type: ReturnType, business_id: str, period: str, out: str | None) -> int:
    try:
        async for db in get_db():
            service = GstReturnService.from_session(db)
            if return_type == ReturnType.GSTR1:
                record = await service.generate_gstr1(business_id, period)
            else:
                record = await service.generate_gstr3b(business_id, period)
    except GSTError as exc:
        logger.error("Generation failed: {}", exc.to_dict())
        return 1
    finally:
        await engine.dispose()

    text = export_return_json(record)
    if out:
        with open(out, "w", encoding="utf-8") as fh:
            fh.write(text)
        logger.success("{} for {} written to {}", return_type.value.upper(), period, out)
    else:
        print(text)
    return 0


def main(argv: list[str]) -> int:
    args = list(argv)
    out = None
    if "--out" in args:
        idx = args.index("--out")
        out = args[idx + 1] if idx + 1 < len(args) else None
        del args[idx:idx + 2]

    if len(args) != 3 or args[0].lower() not in {t.value for t in ReturnType}:
        print(__doc__.strip())
        return 2

    return_type, business_id, period = ReturnType(args[0].lower()), args[1], args[2]
    return asyncio.run(generate(return_type, business_id, period, out))


if __name__ == "__main__":
    setup_logging()
    sys.exit(main(sys.argv[1:]))
