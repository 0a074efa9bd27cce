"""
Apply pending Alembic migrations to DATABASE_URL.

Installed as the ``travel-journal-migrate`` command; also runnable with
``python -m journal_api.migrate``.
"""
import sys
from pathlib import Path

import logfire
from alembic import command
from alembic.config import Config

PACKAGE_DIR = Path(__file__).resolve().parent
ALEMBIC_INI = PACKAGE_DIR.parent / "alembic.ini"


def build_config(ini_path: Path = ALEMBIC_INI) -> Config:
    # Installed wheels ship the migrations but not alembic.ini
    config = Config(str(ini_path)) if ini_path.exists() else Config()
    config.set_main_option("script_location", str(PACKAGE_DIR / "migrations"))
    return config


def main(revision: str = "head") -> int:
    logfire.info("Running database migrations to {revision}", revision=revision)
    try:
        command.upgrade(build_config(), revision)
    except Exception as e:
        logfire.error("Migration failed: {error}", error=str(e))
        print(f"Migration failed: {e}", file=sys.stderr)
        return 1

    print("Migrations completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
