import re
from typing import Optional, Union
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import ArgumentError
from sqlalchemy.pool import NullPool
from budgetrec.config import Settings, settings
from budgetrec.errors import ActualsConfigError
from budgetrec.logging import logger

_SCHEMA_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def actuals_database_url(cfg: Optional[Settings] = None) -> Union[str, URL]:
    """Resolve the actuals database URL from settings."""
    cfg = cfg or settings

    if cfg.DATABASE_URL:
        return cfg.DATABASE_URL

    password = cfg.DATABASE_PASSWORD.get_secret_value() if cfg.DATABASE_PASSWORD else None
    if not (cfg.DATABASE_SERVER and cfg.DATABASE_NAME and cfg.DATABASE_USER and password):
        raise ActualsConfigError(
            "Missing required database settings: set DATABASE_URL or "
            "DATABASE_SERVER, DATABASE_NAME, DATABASE_USER and DATABASE_PASSWORD"
        )

    return URL.create(
        "mssql+pyodbc",
        username=cfg.DATABASE_USER,
        password=password,
        host=cfg.DATABASE_SERVER,
        database=cfg.DATABASE_NAME,
        query={
            "driver": cfg.DATABASE_DRIVER,
            "Encrypt": "yes",
            "TrustServerCertificate": "yes",
        },
    )


def create_actuals_engine(cfg: Optional[Settings] = None) -> Engine:
    """
    Build an engine for the actuals database.

    NullPool: every connection is opened for one query and really closed on
    release, nothing is shared between requests.
    """
    cfg = cfg or settings
    url = actuals_database_url(cfg)

    execution_options = {}
    if cfg.ACTUALS_DB_SCHEMA:
        if not _SCHEMA_RE.match(cfg.ACTUALS_DB_SCHEMA):
            raise ActualsConfigError(f"Invalid ACTUALS_DB_SCHEMA: {cfg.ACTUALS_DB_SCHEMA!r}")
        execution_options["schema_translate_map"] = {None: cfg.ACTUALS_DB_SCHEMA}

    try:
        engine = create_engine(url, poolclass=NullPool, execution_options=execution_options)
    except ArgumentError as e:
        raise ActualsConfigError(f"Invalid database URL: {e}") from e
    except ImportError as e:
        raise ActualsConfigError(f"Database driver not installed: {e}") from e

    logger.debug(f"Actuals engine ready for {engine.url.render_as_string(hide_password=True)}")
    return engine
