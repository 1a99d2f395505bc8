# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: Apache-2.0

"""
Raw wire checks that protobuf parsing alone does not perform.

The protobuf runtime accepts an encoding where several members of one oneof are present and silently keeps the
last one. `check_oneof_exclusivity` walks the encoded bytes against the message descriptor and rejects such
payloads before they are parsed.
"""

import logging
from collections.abc import Iterator
from typing import TypeVar

from google.protobuf.descriptor import Descriptor, FieldDescriptor
from google.protobuf.message import DecodeError, Message

from aip_processor.exceptions import MalformedPayloadError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Message)

LENGTH_DELIMITED = 2

_MAX_VARINT_SHIFT = 63


def _read_varint(data: bytes, pos: int, path: str) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise MalformedPayloadError(path, message=f"{path}: truncated varint.")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift > _MAX_VARINT_SHIFT:
            raise MalformedPayloadError(path, message=f"{path}: varint longer than 10 bytes.")


def iter_fields(data: bytes, path: str = "message") -> Iterator[tuple[int, int, bytes]]:
    """Yield (field number, wire type, raw payload) for every top-level field in an encoded message."""
    pos = 0
    end = len(data)
    while pos < end:
        key, pos = _read_varint(data, pos, path)
        field_number, wire_type = key >> 3, key & 0x7
        if field_number == 0:
            raise MalformedPayloadError(path, message=f"{path}: field number 0 is invalid.")
        match wire_type:
            case 0:
                start = pos
                _, pos = _read_varint(data, pos, path)
                payload = data[start:pos]
            case 1:
                payload, pos = data[pos : pos + 8], pos + 8
            case 2:
                length, pos = _read_varint(data, pos, path)
                payload, pos = data[pos : pos + length], pos + length
            case 5:
                payload, pos = data[pos : pos + 4], pos + 4
            case _:
                raise MalformedPayloadError(path, message=f"{path}: unsupported wire type {wire_type}.")
        if pos > end:
            raise MalformedPayloadError(path, message=f"{path}: field {field_number} runs past the end of the buffer.")
        yield field_number, wire_type, payload


def check_oneof_exclusivity(descriptor: Descriptor, data: bytes, path: str | None = None) -> None:
    """
    Raise MalformedPayloadError if any oneof in the encoded message, at any depth, has more than one member present.

    A singular embedded message that occurs several times is merged by protobuf, which is the same as parsing the
    concatenation of its occurrences, so those are checked as one message. Repeated ones are checked per element.
    """
    path = path or descriptor.name
    seen: dict[str, list[str]] = {}
    singular: dict[FieldDescriptor, list[bytes]] = {}

    for field_number, wire_type, payload in iter_fields(data, path):
        field = descriptor.fields_by_number.get(field_number)
        if field is None:
            continue
        oneof = field.containing_oneof
        if oneof is not None:
            members = seen.setdefault(oneof.name, [])
            if field.name not in members:
                members.append(field.name)
            if len(members) > 1:
                raise MalformedPayloadError(f"{path}.{oneof.name}", members)
        if field.message_type is None or wire_type != LENGTH_DELIMITED:
            continue
        if field.label == FieldDescriptor.LABEL_REPEATED:
            check_oneof_exclusivity(field.message_type, payload, f"{path}.{field.name}[]")
        else:
            singular.setdefault(field, []).append(payload)

    for field, chunks in singular.items():
        check_oneof_exclusivity(field.message_type, b"".join(chunks), f"{path}.{field.name}")


def parse_message(message_cls: type[M], data: bytes) -> M:
    """Validate oneof exclusivity on the raw bytes, then parse them into `message_cls`."""
    check_oneof_exclusivity(message_cls.DESCRIPTOR, data)
    try:
        return message_cls.FromString(data)
    except DecodeError as e:
        logger.debug("Failed to decode %s: %s", message_cls.DESCRIPTOR.name, e)
        name = message_cls.DESCRIPTOR.name
        raise MalformedPayloadError(name, message=f"Cannot decode {name}: {e}") from e
