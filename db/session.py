from sqlmodel import create_engine
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Connects app to the attendance ledger database

_engine = None


def build_database_url() -> str:
    """
    Resolve the ledger database URL from the environment.

    DATABASE_URL wins when set; otherwise a PostgreSQL URL is assembled from
    DB_* variables (TCP) or INSTANCE_CONNECTION_NAME (Cloud SQL socket).
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    DB_HOST = os.getenv("DB_HOST")
    DB_PORT = os.getenv("DB_PORT", "5432")  # Default PostgreSQL port
    DB_NAME = os.getenv("DB_NAME")
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    INSTANCE_CONNECTION_NAME = os.getenv("INSTANCE_CONNECTION_NAME") # For Cloud SQL Proxy

    required_vars_for_tcp = ["DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD"]
    required_vars_for_socket = ["DB_NAME", "DB_USER", "DB_PASSWORD", "INSTANCE_CONNECTION_NAME"]

    if INSTANCE_CONNECTION_NAME:
        missing_vars = [var for var in required_vars_for_socket if not os.getenv(var)]
        if missing_vars:
            raise ValueError(f"Missing required environment variables for Cloud SQL (socket): {', '.join(missing_vars)}")
        # Construct PostgreSQL connection URL for Cloud SQL (Unix socket)
        return f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@/{DB_NAME}?host=/cloudsql/{INSTANCE_CONNECTION_NAME}"

    missing_vars = [var for var in required_vars_for_tcp if not os.getenv(var)]
    if missing_vars:
        raise ValueError(f"Missing required environment variables for TCP: {', '.join(missing_vars)}")
    # Construct PostgreSQL connection URL for TCP (e.g., local development)
    return f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# The Wire / Link That Lets Us Pass Data from App -> db
# Note: echo=True will log all SQL statements, set to False in production
def get_engine():
    global _engine
    if _engine is None:
        _engine = create_engine(build_database_url(), echo=False, pool_pre_ping=True)
    return _engine
