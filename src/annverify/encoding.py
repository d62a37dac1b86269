"""Key/value parameter blobs in protobuf text format.

The message layout mirrors the index-build wire schema::

    message KeyValuePair { string key = 1; string value = 2; }
    message TypeParams   { repeated KeyValuePair params = 1; }
    message IndexParams  { repeated KeyValuePair params = 1; }

The descriptors are assembled at import time so no generated ``_pb2`` module
is needed.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Mapping

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory, text_format
from google.protobuf.message import Message

from .catalog import DIM, K, get_config
from .features import FeatureTable
from .types import ConfigValue, MapParams

_PACKAGE = "annverify.indexparams"


class EncodingError(AssertionError):
    """A parameter map cannot be represented in the blob format."""


def _build_message_classes() -> dict[str, type[Message]]:
    field_proto = descriptor_pb2.FieldDescriptorProto
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="annverify/index_params.proto",
        package=_PACKAGE,
        syntax="proto3",
    )
    kv = file_proto.message_type.add(name="KeyValuePair")
    kv.field.add(name="key", number=1, type=field_proto.TYPE_STRING, label=field_proto.LABEL_OPTIONAL)
    kv.field.add(name="value", number=2, type=field_proto.TYPE_STRING, label=field_proto.LABEL_OPTIONAL)
    for name in ("TypeParams", "IndexParams"):
        msg = file_proto.message_type.add(name=name)
        msg.field.add(
            name="params",
            number=1,
            type=field_proto.TYPE_MESSAGE,
            label=field_proto.LABEL_REPEATED,
            type_name=f".{_PACKAGE}.KeyValuePair",
        )

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    return {
        name: message_factory.GetMessageClass(pool.FindMessageTypeByName(f"{_PACKAGE}.{name}"))
        for name in ("KeyValuePair", "TypeParams", "IndexParams")
    }


_MESSAGES = _build_message_classes()
TypeParams = _MESSAGES["TypeParams"]
IndexParams = _MESSAGES["IndexParams"]


def _value_str(key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, float) and not math.isfinite(value):
        raise EncodingError(f"parameter '{key}' has a non-finite value: {value!r}")
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    raise EncodingError(f"parameter '{key}' has a non-representable value: {value!r}")


def _fill(message: Message, mapping: Mapping[str, ConfigValue]) -> Message:
    for key, value in mapping.items():
        if not isinstance(key, str):
            raise EncodingError(f"parameter keys must be strings, got {key!r}")
        try:
            kv = message.params.add()
            kv.key = key
            kv.value = _value_str(key, value)
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"parameter '{key}' cannot be encoded: {exc}") from exc
    return message


def type_params_message(mapping: Mapping[str, ConfigValue]) -> Message:
    return _fill(TypeParams(), mapping)


def index_params_message(mapping: Mapping[str, ConfigValue]) -> Message:
    return _fill(IndexParams(), mapping)


def encode_message(message: Message) -> str:
    return text_format.MessageToString(message)


def encode_type_params(mapping: Mapping[str, ConfigValue]) -> str:
    return encode_message(type_params_message(mapping))


def encode_index_params(mapping: Mapping[str, ConfigValue]) -> str:
    return encode_message(index_params_message(mapping))


def _decode(blob: str, message: Message) -> MapParams:
    text_format.Parse(blob, message)
    return {kv.key: kv.value for kv in message.params}


def decode_type_params(blob: str) -> MapParams:
    return _decode(blob, TypeParams())


def decode_index_params(blob: str) -> MapParams:
    return _decode(blob, IndexParams())


def generate_params(
    index_type: str,
    metric: str,
    *,
    dim: int = DIM,
    topk: int = K,
    features: FeatureTable | None = None,
) -> tuple[Message, Message]:
    """Build the (type params, index params) messages for one index build.

    ``index_type`` is always appended after the catalog entries, even when the
    catalog has no configuration for it.
    """
    config = get_config(index_type, metric, dim=dim, topk=topk, features=features)
    index_params = index_params_message(config)
    _fill(index_params, {"index_type": index_type})
    return TypeParams(), index_params


@dataclass(frozen=True, slots=True)
class BlobDataset:
    rows: int
    dim: int
    tensor: bytes


def blob_dataset(message: Message) -> BlobDataset:
    data = message.SerializeToString()
    return BlobDataset(rows=len(data), dim=8, tensor=data)


__all__ = [
    "BlobDataset",
    "EncodingError",
    "IndexParams",
    "TypeParams",
    "blob_dataset",
    "decode_index_params",
    "decode_type_params",
    "encode_index_params",
    "encode_message",
    "encode_type_params",
    "generate_params",
    "index_params_message",
    "type_params_message",
]
