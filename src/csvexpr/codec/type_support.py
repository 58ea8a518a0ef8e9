# src/csvexpr/codec/type_support.py
"""Which data types can travel through delimited text.

Writing is permissive: containers are rendered as text. Reading is not:
a CSV token can only become an atomic value.
"""

from __future__ import annotations

from csvexpr.contracts.errors import UnsupportedDataTypeError
from csvexpr.contracts.types import (
    ArrayType,
    DataType,
    MapType,
    StructType,
    UserDefinedType,
    VariantType,
    is_atomic,
)


def is_supported_data_type(data_type: DataType) -> bool:
    """True if values of ``data_type`` can be encoded to text.

    Containers are supported when everything they nest is supported. The
    variant type is never supported. A UDT is judged by its physical type.
    """
    if isinstance(data_type, VariantType):
        return False
    if isinstance(data_type, ArrayType):
        return is_supported_data_type(data_type.element_type)
    if isinstance(data_type, MapType):
        return is_supported_data_type(data_type.key_type) and is_supported_data_type(data_type.value_type)
    if isinstance(data_type, StructType):
        return all(is_supported_data_type(f.data_type) for f in data_type)
    if isinstance(data_type, UserDefinedType):
        return is_supported_data_type(data_type.sql_type)
    return True


def is_readable_data_type(data_type: DataType) -> bool:
    """True if a single CSV token can be decoded into ``data_type``."""
    if isinstance(data_type, UserDefinedType):
        return is_readable_data_type(data_type.sql_type)
    return is_atomic(data_type)


def verify_readable_schema(schema: StructType) -> None:
    """Reject schemas with fields that cannot be decoded from a token.

    Raises:
        UnsupportedDataTypeError: Naming the first unreadable field type.
    """
    for f in schema:
        if not is_readable_data_type(f.data_type):
            raise UnsupportedDataTypeError(f.data_type.sql)
