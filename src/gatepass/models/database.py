"""Engine and per-request session for the Gatepass database"""

from sqlalchemy import create_engine
from sqlmodel import Session

from gatepass.config import config

DATABASE_URL = config["database_url"]

if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL is not set. Set it in the environment or in a local .env file."
    )

# pool_pre_ping drops connections the server closed while idle
engine = create_engine(DATABASE_URL, echo=config["sql_echo"], pool_pre_ping=True)


def get_db():
    """Yield one session per request; services commit their own work"""
    with Session(engine) as session:
        yield session
