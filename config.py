"""
Configuration - Environment driven settings for merge planning and execution
"""

import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class MergeConfig:
    """Merge planner configuration"""

    # Database
    DSN = os.getenv("MERGE_PLANNER_DSN", "")
    STATEMENT_TIMEOUT_MS = int(os.getenv("MERGE_PLANNER_STATEMENT_TIMEOUT_MS", "300000"))

    # Planning
    STRICT_GUARDRAILS = _env_bool("MERGE_PLANNER_STRICT_GUARDRAILS", "true")

    # Retry of transactions the server rolled back
    MAX_RETRIES = int(os.getenv("MERGE_PLANNER_MAX_RETRIES", "3"))
    RETRY_DELAY_SECONDS = float(os.getenv("MERGE_PLANNER_RETRY_DELAY_SECONDS", "1"))

    # Logging, written to stderr by the command line
    LOG_LEVEL = os.getenv("MERGE_PLANNER_LOG_LEVEL", "INFO").upper()
