"""Configuration management for the campaign ledger."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()

# Length of the campaigns.title column
TITLE_COLUMN_LENGTH = 255


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Ledger configuration."""

    db_url: str = "sqlite:///crowdledger.db"
    log_level: str = "INFO"

    # Escrow principal (contract identity holding contributed funds)
    contract_address: str = "ST1RVN5QPTET1RV9BJQX35JQWJFYG8YNHQEY5QN24"
    contract_name: str = "crowdfunding"

    # Text limits for campaign metadata (ASCII only)
    title_max_length: int = 100
    description_max_length: int = 500

    # Lifecycle policies
    allow_late_contributions: bool = False
    allow_early_finalize: bool = True

    # Stacks node (block height oracle)
    stacks_api_url: str = "https://api.testnet.hiro.so"
    stacks_api_timeout_seconds: float = 10.0

    # Event notification
    publish_events: bool = False
    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_user: str = "guest"
    rabbitmq_password: str = "guest"
    rabbitmq_vhost: str = "/"
    rabbitmq_exchange: str = "ledger_events"
    # Connect attempts after the first when publishing from the ledger
    rabbitmq_connect_retries: int = 0

    @property
    def escrow_principal(self) -> str:
        """Fully qualified contract principal holding escrowed funds."""
        return f"{self.contract_address}.{self.contract_name}"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            db_url=os.getenv("DB_URL", "sqlite:///crowdledger.db"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            contract_address=os.getenv("CONTRACT_ADDRESS", "ST1RVN5QPTET1RV9BJQX35JQWJFYG8YNHQEY5QN24"),
            contract_name=os.getenv("CONTRACT_NAME", "crowdfunding"),
            title_max_length=int(os.getenv("TITLE_MAX_LENGTH", "100")),
            description_max_length=int(os.getenv("DESCRIPTION_MAX_LENGTH", "500")),
            allow_late_contributions=_env_bool("ALLOW_LATE_CONTRIBUTIONS", False),
            allow_early_finalize=_env_bool("ALLOW_EARLY_FINALIZE", True),
            stacks_api_url=os.getenv("STACKS_API_URL", "https://api.testnet.hiro.so"),
            stacks_api_timeout_seconds=float(os.getenv("STACKS_API_TIMEOUT_SECONDS", "10")),
            publish_events=_env_bool("PUBLISH_EVENTS", False),
            rabbitmq_host=os.getenv("RABBITMQ_HOST", "localhost"),
            rabbitmq_port=int(os.getenv("RABBITMQ_PORT", "5672")),
            rabbitmq_user=os.getenv("RABBITMQ_USER", "guest"),
            rabbitmq_password=os.getenv("RABBITMQ_PASSWORD", "guest"),
            rabbitmq_vhost=os.getenv("RABBITMQ_VHOST", "/"),
            rabbitmq_exchange=os.getenv("RABBITMQ_EXCHANGE", "ledger_events"),
            rabbitmq_connect_retries=int(os.getenv("RABBITMQ_CONNECT_RETRIES", "0")),
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.db_url:
            raise ValueError("db_url is required")
        if not self.contract_address or not self.contract_name:
            raise ValueError("contract_address and contract_name are required")
        if not 0 < self.title_max_length <= TITLE_COLUMN_LENGTH:
            raise ValueError(f"title_max_length must be between 1 and {TITLE_COLUMN_LENGTH}")
        if self.description_max_length <= 0:
            raise ValueError("description_max_length must be > 0")
        if self.stacks_api_timeout_seconds <= 0:
            raise ValueError("stacks_api_timeout_seconds must be > 0")
        if self.rabbitmq_port <= 0:
            raise ValueError("rabbitmq_port must be > 0")
        if self.rabbitmq_connect_retries < 0:
            raise ValueError("rabbitmq_connect_retries must be >= 0")

    def get_rabbitmq_connection_params(self) -> dict:
        """Get RabbitMQ connection parameters as a dictionary."""
        return {
            "host": self.rabbitmq_host,
            "port": self.rabbitmq_port,
            "user": self.rabbitmq_user,
            "password": self.rabbitmq_password,
            "vhost": self.rabbitmq_vhost,
        }
