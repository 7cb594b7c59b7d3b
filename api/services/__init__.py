"""API Services Package."""

from api.services.imports import (
    ImportStarter,
    get_import_starter,
    get_settings,
    get_store,
    start_import_workflow,
)

__all__ = [
    "ImportStarter",
    "get_import_starter",
    "get_settings",
    "get_store",
    "start_import_workflow",
]
