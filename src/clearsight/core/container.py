#!/usr/bin/env python3
"""
Dependency Injection Container

Central place where configuration, the article store, the scoring client,
the news source and the enrichment pipeline are created. Commands pull
services from here; tests register fakes in their place.
"""

import logging
from typing import Any, Callable, Dict, Optional, Set, TypeVar
import threading

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Container:
    """Simple dependency injection container with lifecycle management."""

    def __init__(self):
        """Initialize empty container."""
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._singleton_names: Set[str] = set()
        self._singletons: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def register_singleton(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service as singleton (created once, reused).

        Args:
            service_name: Unique name for the service
            factory: Function that creates the service instance
        """
        with self._lock:
            self._factories[service_name] = factory
            self._singleton_names.add(service_name)
            self._singletons.pop(service_name, None)

    def register_factory(self, service_name: str, factory: Callable[[], T]) -> None:
        """
        Register a service as factory (new instance each time).

        Args:
            service_name: Unique name for the service
            factory: Function that creates service instances
        """
        with self._lock:
            self._factories[service_name] = factory
            self._singleton_names.discard(service_name)
            self._singletons.pop(service_name, None)

    def register_instance(self, service_name: str, instance: T) -> None:
        """
        Register an existing instance as singleton.

        Args:
            service_name: Unique name for the service
            instance: Pre-created service instance
        """
        with self._lock:
            self._singletons[service_name] = instance
            self._singleton_names.add(service_name)

    def get(self, service_name: str) -> Any:
        """
        Get service instance by name.

        Raises:
            KeyError: If service is not registered
        """
        if service_name in self._singletons:
            return self._singletons[service_name]

        with self._lock:
            if service_name not in self._factories:
                raise KeyError(f"Service '{service_name}' not registered")

            factory = self._factories[service_name]
            if service_name not in self._singleton_names:
                logger.debug(f"Created new instance for '{service_name}'")
                return factory()

            # Double-check pattern for thread safety
            if service_name not in self._singletons:
                self._singletons[service_name] = factory()
                logger.debug(f"Created singleton instance for '{service_name}'")
            return self._singletons[service_name]

    def has(self, service_name: str) -> bool:
        """Check if service is registered."""
        return service_name in self._factories or service_name in self._singletons

    def clear(self) -> None:
        """Clear all registered services and instances."""
        with self._lock:
            self._factories.clear()
            self._singleton_names.clear()
            self._singletons.clear()


# Global container instance
_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get global container instance (thread-safe singleton)."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = Container()
                _setup_default_services(_container)
    return _container


def reset_container() -> None:
    """Reset global container (useful for testing)."""
    global _container
    with _container_lock:
        if _container:
            _container.clear()
        _container = None


def _setup_default_services(container: Container) -> None:
    """Set up default service registrations with configuration injection."""

    def create_config():
        from .config import get_config
        return get_config()

    def create_store():
        from .database import create_store as build_store
        return build_store(container.get('config'))

    def create_scoring_client():
        from ..integrations.groq_client import ScoringClient
        config = container.get('config')
        if not config.has_groq():
            raise ValueError("Groq API key not configured (set GROQ_API_KEY)")
        return ScoringClient.from_config(config)

    def create_news_client():
        from .sources.newsapi import NewsApiClient
        config = container.get('config')
        if not config.has_news_api():
            raise ValueError("NewsAPI key not configured (set NEWS_API_KEY)")
        return NewsApiClient(
            api_key=config.integrations.news_api_key,
            timeout=config.integrations.news_api_timeout
        )

    def create_pipeline():
        from .analysis.pipeline import EnrichmentPipeline
        from .analysis.dispatch import policy_from_config
        config = container.get('config')
        source = container.get('news_client') if config.has_news_api() else None
        return EnrichmentPipeline(
            store=container.get('store'),
            client=container.get('scoring_client'),
            policy=policy_from_config(config),
            source=source
        )

    container.register_singleton('config', create_config)
    container.register_singleton('store', create_store)
    container.register_singleton('scoring_client', create_scoring_client)
    container.register_singleton('news_client', create_news_client)

    # Pipelines are cheap and carry per-run policy, so build one per use
    container.register_factory('pipeline', create_pipeline)

    logger.debug("Default services registered in container")

