from .session import engine, create_layer_engine

__all__ = [
    "engine",
    "create_layer_engine",
]
