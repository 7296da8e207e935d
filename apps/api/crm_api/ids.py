"""Typed, prefixed identifiers.

Every entity kind gets its own identifier class (``ContactId``, ``DealId`` ...).
An identifier renders as ``"{prefix}_{uuid}"`` and only parses back when the
prefix matches its kind, so a contact id can never be accepted where a deal id
is expected. Identifiers of one kind order by their 128-bit value; comparing
identifiers of different kinds raises ``TypeError`` and equality is ``False``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, ClassVar, TypeVar

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from crm_api.errors import MalformedIdentifier

IdT = TypeVar("IdT", bound="PrefixedId")

_ZERO_UUID = uuid.UUID(int=0)


@dataclass(frozen=True, order=True, slots=True)
class PrefixedId:
    prefix: ClassVar[str] = ""

    value: uuid.UUID

    @classmethod
    def create(cls: type[IdT]) -> IdT:
        return cls(uuid.uuid4())

    @classmethod
    def zero(cls: type[IdT]) -> IdT:
        """Sentinel that sorts before every real identifier of the kind."""
        return cls(_ZERO_UUID)

    @classmethod
    def parse(cls: type[IdT], raw: str) -> IdT:
        prefix, separator, value = raw.partition("_")
        if not separator or prefix != cls.prefix:
            raise MalformedIdentifier(
                f"expected a '{cls.prefix}' identifier",
                details={"value": raw},
            )
        try:
            return cls(uuid.UUID(value))
        except ValueError:
            raise MalformedIdentifier(
                f"invalid uuid in '{cls.prefix}' identifier",
                details={"value": raw},
            ) from None

    @classmethod
    def parse_optional(cls: type[IdT], raw: str | None) -> IdT | None:
        if raw is None or raw == "":
            return None
        return cls.parse(raw)

    def format(self) -> str:
        return f"{self.prefix}_{self.value}"

    def is_zero(self) -> bool:
        return self.value == _ZERO_UUID

    def __str__(self) -> str:
        return self.format()

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        from_string = core_schema.no_info_after_validator_function(cls.parse, core_schema.str_schema())
        return core_schema.json_or_python_schema(
            json_schema=from_string,
            python_schema=core_schema.union_schema([core_schema.is_instance_schema(cls), from_string]),
            serialization=core_schema.plain_serializer_function_ser_schema(_serialize, info_arg=True),
        )


def _serialize(instance: PrefixedId, info: core_schema.SerializationInfo) -> Any:
    # Python-mode dumps keep the typed id so it can be bound to a column.
    return instance.format() if info.mode_is_json() else instance


class OrgId(PrefixedId):
    prefix = "org"


class UserId(PrefixedId):
    prefix = "user"


class OrgUserId(PrefixedId):
    prefix = "orguser"


class InvitationId(PrefixedId):
    prefix = "invitation"


class ApiKeyId(PrefixedId):
    prefix = "apikey"


class ContactId(PrefixedId):
    prefix = "contact"


class DealId(PrefixedId):
    prefix = "deal"


class DealContactId(PrefixedId):
    prefix = "dealcontact"


class NoteId(PrefixedId):
    prefix = "note"


class CompanyId(PrefixedId):
    prefix = "company"


class LinkId(PrefixedId):
    prefix = "link"


class EmailId(PrefixedId):
    prefix = "email"


class PhoneId(PrefixedId):
    prefix = "phone"


class TaskId(PrefixedId):
    prefix = "task"


class TaskDealId(PrefixedId):
    prefix = "taskdeal"


class TaskLinkId(PrefixedId):
    prefix = "tasklink"


class TaskUserId(PrefixedId):
    prefix = "taskuser"
