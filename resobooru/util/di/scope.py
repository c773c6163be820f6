"""Custom Dishka scopes for resobooru."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Dependency injection scopes.

    Hierarchy: APP -> RUN

    - APP: Process lifetime (HTTP clients, adapters, stateless helpers)
    - RUN: One importer run (services)
    """

    APP = new_scope("APP")
    RUN = new_scope("RUN")
