"""Feature modules the ``load`` setting can activate.

Adding a feature requires:
1. Add a FeatureDefinition entry to FEATURE_REGISTRY below.
2. Give the module a ``create_store(uri)`` (store backends) or
   ``create_client(uri, timeout)`` (remote clients) factory.
"""

import importlib
from dataclasses import dataclass, field
from types import ModuleType
from typing import Iterable, List, Optional

from .config import CollectorConfig
from .exceptions import ConfigurationError, InvalidConfigError
from .logging_config import get_logger
from .persistence.base import EventStore
from .remote import RestClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeatureDefinition:
    name: str                 # "sqlite"
    module: str               # import path of the implementing module
    description: str
    provides: str             # "store" | "remote"
    schemes: tuple[str, ...] = ()  # URI schemes handled by a store backend


FEATURE_REGISTRY: List[FeatureDefinition] = [
    FeatureDefinition(
        name="sqlite",
        module="sw_collector.persistence.database",
        description="SQLite event store",
        provides="store",
        schemes=("sqlite",),
    ),
    FeatureDefinition(
        name="rest",
        module="sw_collector.remote",
        description="REST client for the remote verification service",
        provides="remote",
    ),
]

_BY_NAME = {f.name: f for f in FEATURE_REGISTRY}


@dataclass
class LoadedFeatures:
    """Feature modules activated for this process."""

    modules: dict[str, ModuleType] = field(default_factory=dict)

    @property
    def names(self) -> list[str]:
        return list(self.modules)

    def _providing(self, kind: str) -> Iterable[tuple[FeatureDefinition, ModuleType]]:
        for name, module in self.modules.items():
            definition = _BY_NAME[name]
            if definition.provides == kind:
                yield definition, module

    def open_store(self, uri: str) -> EventStore:
        """Open the event store for ``uri`` with a loaded backend."""
        scheme, sep, _ = uri.partition("://")
        if not sep:
            raise InvalidConfigError("database", uri, "expected <scheme>://<location>")
        for definition, module in self._providing("store"):
            if scheme in definition.schemes:
                return module.create_store(uri)
        raise ConfigurationError(
            f"no loaded feature handles '{scheme}' databases",
            details={"loaded": ", ".join(self.names) or "none"},
        )

    def remote_client(self, config: CollectorConfig) -> Optional[RestClient]:
        """Create the remote client, or None if no remote feature is loaded."""
        for _, module in self._providing("remote"):
            return module.create_client(config.require("rest_api_uri"), config.rest_api_timeout)
        return None


def load_features(names: Iterable[str]) -> LoadedFeatures:
    """Import the modules of the named features.

    Raises:
        InvalidConfigError: for a name not in FEATURE_REGISTRY
        ConfigurationError: if a feature module cannot be imported
    """
    loaded = LoadedFeatures()
    for name in names:
        definition = _BY_NAME.get(name)
        if definition is None:
            raise InvalidConfigError(
                "load", name, f"unknown feature, expected one of {', '.join(sorted(_BY_NAME))}"
            )
        if name in loaded.modules:
            continue
        try:
            loaded.modules[name] = importlib.import_module(definition.module)
        except ImportError as e:
            raise ConfigurationError(
                f"loading feature '{name}' failed", details={"reason": str(e)}
            )
        logger.debug("Loaded feature %s (%s)", name, definition.description)
    return loaded
