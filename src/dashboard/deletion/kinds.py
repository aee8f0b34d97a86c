from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EntityKind:
    """A type of entity the dashboard manages."""

    name: str
    collection: str
    image_folder: str
    label: str

    def folder_prefix(self, entity_id: str) -> str:
        """Blob prefix grouping an entity's auxiliary images."""
        return f"{self.image_folder}/{entity_id}/"


CUSTOMER = EntityKind(
    name="customer",
    collection="customers",
    image_folder="customerImage",
    label="Customer",
)

EMPLOYEE = EntityKind(
    name="employee",
    collection="employees",
    image_folder="employeeImage",
    label="Employee",
)

ENTITY_KINDS: dict[str, EntityKind] = {kind.name: kind for kind in (CUSTOMER, EMPLOYEE)}


def collections() -> list[str]:
    return [kind.collection for kind in ENTITY_KINDS.values()]
