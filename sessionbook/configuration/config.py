import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Config:
    # Azure CosmosDB Configuration
    COSMOSDB_ENDPOINT = os.getenv("COSMOS_DB_ENDPOINT")
    COSMOSDB_KEY = os.getenv("COSMOS_DB_KEY")  # Falls back to DefaultAzureCredential when unset
    COSMOSDB_DATABASE_NAME = os.getenv("COSMOS_DB_DATABASE", "sessionbook")
    COSMOSDB_CONTAINER_NAME = {
        "bookings": os.getenv("COSMOS_CONTAINERS_BOOKINGS", "bookings"),
        "availabilities": os.getenv("COSMOS_CONTAINERS_AVAILABILITIES", "availabilities"),
        "packages": os.getenv("COSMOS_CONTAINERS_PACKAGES", "packages"),
        "trainers": os.getenv("COSMOS_CONTAINERS_TRAINERS", "trainers"),
        "ledgers": os.getenv("COSMOS_CONTAINERS_LEDGERS", "slot_ledgers"),
        "notifications": os.getenv("COSMOS_CONTAINERS_NOTIFICATIONS", "notifications"),
    }

    # JWT Configuration (tokens are issued by the identity provider)
    JWT_SECRET_KEY = os.getenv("AUTH_SECRET_KEY")
    JWT_ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")
    JWT_AUDIENCE = os.getenv("AUTH_AUDIENCE")
    AUTH_TOKEN_URL = os.getenv("AUTH_TOKEN_URL", "/auth/token")

    # Application Insights
    APPLICATIONINSIGHTS_CONNECTION_STRING = os.getenv("APPINSIGHTS_INSTRUMENTATIONKEY")

    # Stripe Configuration
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "thb")

    # Scheduling policy
    SCHEDULE_TIMEZONE = os.getenv("SCHEDULE_TIMEZONE", "UTC")
    DEFAULT_SLOT_MINUTES = int(os.getenv("DEFAULT_SLOT_MINUTES", "60"))
    DEFAULT_SESSION_MINUTES = int(os.getenv("DEFAULT_SESSION_MINUTES", "60"))
    FULL_REFUND_HOURS = int(os.getenv("FULL_REFUND_HOURS", "48"))
    PARTIAL_REFUND_HOURS = int(os.getenv("PARTIAL_REFUND_HOURS", "24"))
    PARTIAL_REFUND_RATE = float(os.getenv("PARTIAL_REFUND_RATE", "0.5"))
    RESCHEDULE_NOTICE_HOURS = int(os.getenv("RESCHEDULE_NOTICE_HOURS", "24"))
    MAX_RESCHEDULES = int(os.getenv("MAX_RESCHEDULES", "3"))  # 0 disables the cap
    STREAK_GAP_DAYS = int(os.getenv("STREAK_GAP_DAYS", "2"))
    LEDGER_MAX_RETRIES = int(os.getenv("LEDGER_MAX_RETRIES", "5"))

    # Calendar export
    CALENDAR_NAME = os.getenv("CALENDAR_NAME", "SessionBook")
    APP_BASE_URL = os.getenv("APP_BASE_URL")  # Links exported events back to the booking page

    # Observability
    SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "sessionbook-api")
    SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")
    DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
