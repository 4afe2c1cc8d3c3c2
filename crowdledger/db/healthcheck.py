"""Database health check - verify required tables exist."""

from sqlalchemy import Engine, inspect

from crowdledger.log import get_logger

logger = get_logger(__name__)

# Required tables that must exist
REQUIRED_TABLES = [
    "campaigns",
    "contributions",
    "contributors",
    "ledger_counters",
    "chain_state",
    "events",
    "transfers",
]


def check_tables_exist(engine: Engine) -> None:
    """Verify all required tables exist in the database.

    Raises:
        RuntimeError: If any required table is missing
    """
    logger.info("Checking database schema...")

    existing = set(inspect(engine).get_table_names())
    for table_name in REQUIRED_TABLES:
        if table_name not in existing:
            raise RuntimeError(
                f"DB schema missing. Table '{table_name}' does not exist. "
                "Run 'crowdledger init' first."
            )
        logger.debug(f"Table '{table_name}' exists")

    logger.info("All required tables exist")
