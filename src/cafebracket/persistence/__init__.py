from cafebracket.persistence.gateway import PersistenceGateway, Subscription
from cafebracket.persistence.json_gateway import JsonFileGateway
from cafebracket.persistence.memory_gateway import InMemoryGateway

__all__ = [
    "PersistenceGateway",
    "Subscription",
    "InMemoryGateway",
    "JsonFileGateway",
]
