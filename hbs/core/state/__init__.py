from hbs.core.state.stores import InMemoryStateStore

__all__ = ["InMemoryStateStore"]
