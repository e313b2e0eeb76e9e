"""Protobuf wire schema shared with the invocation collector.

The collector speaks ``inteld.ReportInvocationRequest``. The descriptor is
assembled at import time so no generated _pb2 module has to be shipped; the
encoded bytes are identical to what protoc-generated code produces.
"""
from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from intel_invoke.models import InvocationRecord

PACKAGE = "inteld"
MESSAGE_NAME = "ReportInvocationRequest"

_F = descriptor_pb2.FieldDescriptorProto

# (field number, name, type, label) -- numbering is part of the contract
FIELDS = [
    (1, "executable_path", _F.TYPE_STRING, _F.LABEL_OPTIONAL),
    (2, "arguments", _F.TYPE_STRING, _F.LABEL_REPEATED),
    (3, "duration_ms", _F.TYPE_INT64, _F.LABEL_OPTIONAL),
    (4, "exit_code", _F.TYPE_INT32, _F.LABEL_OPTIONAL),
    (5, "working_directory", _F.TYPE_STRING, _F.LABEL_OPTIONAL),
]

_UINT32_RANGE = 2 ** 32


def _build_message_class():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="inteld/invocation.proto",
        package=PACKAGE,
        syntax="proto3",
    )
    msg = file_proto.message_type.add(name=MESSAGE_NAME)
    for number, name, type_, label in FIELDS:
        msg.field.add(name=name, number=number, type=type_, label=label)

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    descriptor = pool.FindMessageTypeByName(f"{PACKAGE}.{MESSAGE_NAME}")
    return message_factory.GetMessageClass(descriptor)


ReportInvocationRequest = _build_message_class()


def to_int32(value: int) -> int:
    """Wrap an exit status into the signed 32-bit range.

    Windows reports statuses such as 0xC0000005 as large unsigned values.
    """
    value %= _UINT32_RANGE
    if value > 2 ** 31 - 1:
        value -= _UINT32_RANGE
    return value


def encode_record(record: InvocationRecord) -> bytes:
    """Serialize a record into one self-contained envelope."""
    msg = ReportInvocationRequest(
        executable_path=record.executable_path,
        arguments=list(record.arguments),
        duration_ms=record.duration_ms,
        exit_code=to_int32(record.exit_code),
        working_directory=record.working_directory,
    )
    return msg.SerializeToString()


def decode_record(data: bytes) -> InvocationRecord:
    """Parse an envelope. Raises google.protobuf.message.DecodeError on garbage."""
    msg = ReportInvocationRequest()
    msg.ParseFromString(data)
    return InvocationRecord(
        executable_path=msg.executable_path,
        arguments=list(msg.arguments),
        duration_ms=msg.duration_ms,
        exit_code=msg.exit_code,
        working_directory=msg.working_directory,
    )
