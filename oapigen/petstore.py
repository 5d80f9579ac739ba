"""An in-memory pet store serving the expanded petstore API."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

FIRST_PET_ID = 1000


class PetError(Exception):
    """An API error carrying an HTTP status code and a message."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Return the error body as sent to clients."""
        return {"code": self.code, "message": self.message}


class PetNotFoundError(PetError, KeyError):
    """Raised when no pet has the requested id."""

    def __init__(self, pet_id: int) -> None:
        super().__init__(404, f"Could not find pet with ID {pet_id}")
        self.pet_id = pet_id

    def __str__(self) -> str:
        return self.message


def _invalid_new_pet() -> PetError:
    return PetError(400, "Invalid format for NewPet")


def _optional_str(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise _invalid_new_pet()


@dataclass(frozen=True)
class NewPet:
    """A pet as submitted for creation, before it has an id."""

    name: str
    tag: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> NewPet:
        """Decode a request body; raise PetError (400) if it is malformed."""
        if not isinstance(data, Mapping):
            raise _invalid_new_pet()
        name = data.get("name")
        if not isinstance(name, str):
            raise _invalid_new_pet()
        return cls(name=name, tag=_optional_str(data.get("tag")))


@dataclass(frozen=True)
class Pet:
    """A stored pet."""

    id: int
    name: str = ""
    tag: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form, leaving out an absent tag."""
        result: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.tag is not None:
            result["tag"] = self.tag
        return result

    @classmethod
    def from_dict(cls, data: Any) -> Pet:
        """Decode a pet; raise ValueError if fields have the wrong types."""
        if not isinstance(data, Mapping):
            raise ValueError(f"expected a mapping, got {type(data).__name__}")
        pet_id = data.get("id", 0)
        if isinstance(pet_id, bool) or not isinstance(pet_id, int):
            raise ValueError("pet id must be an integer")
        name = data.get("name", "")
        if name is None:
            name = ""
        if not isinstance(name, str):
            raise ValueError("pet name must be a string")
        tag = data.get("tag")
        if tag is not None and not isinstance(tag, str):
            raise ValueError("pet tag must be a string")
        return cls(id=pet_id, name=name, tag=tag)


@dataclass
class PetStore:
    """Thread-safe in-memory storage for pets."""

    pets: dict[int, Pet] = field(default_factory=dict)
    next_id: int = FIRST_PET_ID
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def find_pets(self, tags: Iterable[str] | None = None, limit: int | None = None) -> list[Pet]:
        """Return pets, filtered by tag if given, stopping once ``limit`` is reached."""
        wanted = None if tags is None else list(tags)
        result: list[Pet] = []
        with self._lock:
            for pet in self.pets.values():
                if wanted is None:
                    result.append(pet)
                else:
                    result.extend(pet for tag in wanted if pet.tag is not None and pet.tag == tag)
                if limit is not None and len(result) >= limit:
                    break
        return result

    def add_pet(self, new_pet: NewPet) -> Pet:
        """Store a new pet under the next free id and return it."""
        with self._lock:
            pet = Pet(id=self.next_id, name=new_pet.name, tag=new_pet.tag)
            self.next_id += 1
            self.pets[pet.id] = pet
        return pet

    def find_pet_by_id(self, pet_id: int) -> Pet:
        """Return the pet with ``pet_id``; raise PetNotFoundError if there is none."""
        with self._lock:
            try:
                return self.pets[pet_id]
            except KeyError:
                raise PetNotFoundError(pet_id) from None

    def delete_pet(self, pet_id: int) -> None:
        """Remove the pet with ``pet_id``; raise PetNotFoundError if there is none."""
        with self._lock:
            if pet_id not in self.pets:
                raise PetNotFoundError(pet_id)
            del self.pets[pet_id]