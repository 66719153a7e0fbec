"""Configuration loader for Gatepass with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)

# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL"),
    "port": int(os.getenv("PORT", "8080")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "auth0_domain": os.getenv("AUTH0_DOMAIN"),
    "mailgun_api_key": os.getenv("MAILGUN_API_KEY"),
    "mailgun_domain": os.getenv("MAILGUN_DOMAIN"),
    "sender_email": os.getenv("SENDER_EMAIL"),
    "environment": os.getenv("ENVIRONMENT"),
    "sql_echo": os.getenv("SQL_ECHO", "false").lower() == "true",
    # Bounded retries when a freshly minted token collides at insert time
    "max_token_attempts": int(os.getenv("MAX_TOKEN_ATTEMPTS", "5")),
}
