import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./credits.db")
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Account defaults applied on lazy creation
    DEFAULT_BALANCE = int(data.get("DEFAULT_BALANCE", 500))
    DEFAULT_DAILY_LIMIT = int(data.get("DEFAULT_DAILY_LIMIT", 500))

    # Transaction history
    TRANSACTIONS_DEFAULT_LIMIT = int(data.get("TRANSACTIONS_DEFAULT_LIMIT", 50))
    TRANSACTIONS_MAX_LIMIT = int(data.get("TRANSACTIONS_MAX_LIMIT", 200))

    # Admin account listing
    ACCOUNTS_DEFAULT_PAGE_SIZE = int(data.get("ACCOUNTS_DEFAULT_PAGE_SIZE", 20))
    ACCOUNTS_MAX_PAGE_SIZE = int(data.get("ACCOUNTS_MAX_PAGE_SIZE", 100))

    # Storage timeouts and transient-conflict retries
    STORAGE_TIMEOUT_SECONDS = float(data.get("STORAGE_TIMEOUT_SECONDS", 10.0))
    STORAGE_MAX_RETRIES = int(data.get("STORAGE_MAX_RETRIES", 3))
    STORAGE_RETRY_BACKOFF_SECONDS = float(data.get("STORAGE_RETRY_BACKOFF_SECONDS", 0.05))

    # Daily reset and subscriber bonus
    DAILY_RESET_ENABLED = bool(data.get("DAILY_RESET_ENABLED", True))
    DAILY_RESET_INTERVAL_SECONDS = int(data.get("DAILY_RESET_INTERVAL_SECONDS", 3600))
    RESET_BATCH_SIZE = int(data.get("RESET_BATCH_SIZE", 500))
    DAILY_BONUS_ENABLED = bool(data.get("DAILY_BONUS_ENABLED", True))
    DAILY_BONUS_CREDITS = int(data.get("DAILY_BONUS_CREDITS", 10))
    # Accounts whose daily limit exceeds this are treated as paid tier
    SUBSCRIBER_DAILY_LIMIT_THRESHOLD = int(data.get("SUBSCRIBER_DAILY_LIMIT_THRESHOLD", 500))

    # Ledger Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = int(data.get("RECONCILIATION_INTERVAL_SECONDS", 86400))  # Daily
