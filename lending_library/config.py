import logging
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Persistence
    db_file: str = os.getenv("LIBRARY_DB_FILE", "library.db")
    snapshot_key: str = os.getenv("LIBRARY_SNAPSHOT_KEY", "library_data")
    legacy_json_file: str = os.getenv("LIBRARY_LEGACY_JSON", "library.json")
    seed_defaults: bool = _flag("LIBRARY_SEED_DEFAULTS", "True")

    # Loans
    # empty: day/month/year without zero padding
    loan_date_format: str = os.getenv("LOAN_DATE_FORMAT", "")

    # Output
    output_mode: str = os.getenv("LIB_OUTPUT", "plain")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
