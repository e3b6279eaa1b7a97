from dataclasses import dataclass
from functools import lru_cache
from azure.cosmos import ContainerProxy, CosmosClient
from azure.identity import DefaultAzureCredential
from sessionbook.configuration.config import Config


@dataclass
class CosmosStore:
    """Container clients used by the scheduling services, one per document kind."""
    bookings: ContainerProxy
    availabilities: ContainerProxy
    packages: ContainerProxy
    trainers: ContainerProxy
    ledgers: ContainerProxy
    notifications: ContainerProxy


@lru_cache(maxsize=1)
def get_client() -> CosmosClient:
    """Build the Cosmos client on first use so importing the app needs no credentials."""
    credential = Config.COSMOSDB_KEY or DefaultAzureCredential()
    return CosmosClient(url=Config.COSMOSDB_ENDPOINT, credential=credential)


def get_container(container_key: str) -> ContainerProxy:
    """
    Provides the CosmosDB container client
    Args:
        container_key (str): Key of the container to get (bookings, ledgers, etc.)
    Returns:
        Container client for the specified container
    """
    if container_key not in Config.COSMOSDB_CONTAINER_NAME:
        raise ValueError(f"Container {container_key} not found")
    database = get_client().get_database_client(Config.COSMOSDB_DATABASE_NAME)
    return database.get_container_client(Config.COSMOSDB_CONTAINER_NAME[container_key])


@lru_cache(maxsize=1)
def get_store() -> CosmosStore:
    return CosmosStore(**{key: get_container(key) for key in Config.COSMOSDB_CONTAINER_NAME})


def get_db() -> CosmosStore:
    """Dependency injection function for FastAPI endpoints."""
    return get_store()
