# ==============================================================================
# BASE SERVICE - Business Logic Layer Foundation
# ==============================================================================

from __future__ import annotations

from product_api.database.adapters.base_adapter import BaseStorageAdapter


class BaseService:
    """
    Base class for services backed by the storage adapter.

    Services receive the process-wide adapter and work only through its
    repositories, so they behave identically on either backend.

    Attributes:
        _adapter: Storage adapter for data access
    """

    def __init__(self, adapter: BaseStorageAdapter) -> None:
        self._adapter = adapter
