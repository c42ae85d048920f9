"""Port interface for customer / driver lookups."""

from abc import ABC, abstractmethod


class DirectoryRepository(ABC):
    @abstractmethod
    async def find_customer_key(self, customer_ref: str) -> str | None:
        """Resolve a dispatch's customer reference to a customer storage key.

        The reference may be either the storage key itself or the customer's
        business id. Returns None if no customer matches.
        """
        ...

    @abstractmethod
    async def get_driver_name(self, driver_id: str) -> str | None:
        ...
