# Seed the plans table with the default catalogue
from __future__ import annotations
import asyncio
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import toml  # noqa: E402
from dotenv import load_dotenv  # noqa: E402

from shoply_core.config import load_config  # noqa: E402
from shoply_core.data.supabase_client import SupabaseDocumentStore, create_store_client  # noqa: E402
from shoply_core.errors import ShoplyError  # noqa: E402
from shoply_core.logging import get_logger, setup_logging  # noqa: E402
from shoply_core.services.catalog import initialize_plans  # noqa: E402

logger = get_logger("initialize_plans")

SECRETS_PATH = project_root / ".streamlit" / "secrets.toml"


def read_settings() -> dict:
    """Environment (and .env) overlaid with the [shoply] section of secrets.toml."""
    load_dotenv(project_root / ".env")
    values = dict(os.environ)
    if SECRETS_PATH.exists():
        secrets = toml.load(SECRETS_PATH)
        values.update({k: str(v) for k, v in secrets.get("shoply", {}).items()})
    return values


async def seed() -> int:
    config = load_config(read_settings())
    client = await create_store_client(config)
    store = SupabaseDocumentStore(client)
    try:
        await store.enable_network()
        return await initialize_plans(store)
    finally:
        await store.close()


def main() -> int:
    setup_logging(log_to_file=False)
    try:
        count = asyncio.run(seed())
    except ShoplyError as e:
        logger.error(f"Plan initialization failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Plan initialization failed: {e}", exc_info=True)
        return 1

    print(f"Initialized {count} plans")
    return 0


if __name__ == "__main__":
    sys.exit(main())
