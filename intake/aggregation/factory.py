from collections.abc import Callable, Mapping

from intake.aggregation.base import BaseAggregationStore
from intake.aggregation.memory_store import InMemoryAggregationStore
from intake.aggregation.postgres_store import PostgresAggregationStore
from intake.config.backends import build_backend
from intake.config.settings import Settings


class AggregationStoreFactory:
    """Creates the aggregation store for the configured backend."""

    BACKENDS: Mapping[str, Callable[[Settings], BaseAggregationStore]] = {
        "postgres": lambda _settings: PostgresAggregationStore(),
        "memory": lambda _settings: InMemoryAggregationStore(),
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseAggregationStore:
        return build_backend(
            "aggregation backend", settings.aggregation_backend, cls.BACKENDS, settings
        )
