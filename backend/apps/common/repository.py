from typing import Generic, Iterable, Optional, Type, TypeVar

from django.db import models

T = TypeVar("T", bound=models.Model)


class GenericRepository(Generic[T]):
    """Thin ORM gateway shared by the catalog and cart repositories."""

    def __init__(self, model: Type[T]):
        self.model = model

    def get(self, **filters) -> Optional[T]:
        return self.model.objects.filter(**filters).first()

    def list(self, **filters) -> Iterable[T]:
        return self.model.objects.filter(**filters)

    def exists(self, **filters) -> bool:
        return self.model.objects.filter(**filters).exists()

    def create(self, **data) -> T:
        return self.model.objects.create(**data)

    def update_fields(self, obj: T, **fields) -> T:
        """Assign the given fields, ``None`` included, and save just those columns."""
        dirty = list(fields)
        for key, value in fields.items():
            setattr(obj, key, value)
        if dirty:
            if any(f.name == "updated_at" for f in obj._meta.get_fields()):
                dirty.append("updated_at")
            obj.save(update_fields=dirty)
        return obj

    def delete(self, obj: T) -> None:
        obj.delete()

    def delete_where(self, **filters) -> int:
        deleted, _ = self.model.objects.filter(**filters).delete()
        return deleted
