"""Constructor argument encoding for multichain-deployments library."""

import re
from typing import Any, Dict, List, Optional, Sequence

from eth_abi import encode
from eth_abi.exceptions import EncodingError, ParseError
from eth_utils import is_address, to_checksum_address

from .exceptions import ValidationError

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
_INT_TYPE_RE = re.compile(r"u?int\d*")
_FIXED_BYTES_RE = re.compile(r"bytes\d+")
_ARRAY_SUFFIX_RE = re.compile(r"\[\d*\]$")


def find_constructor(abi: Any) -> Optional[Dict[str, Any]]:
    """
    Return the constructor entry of a contract ABI, if any.

    Args:
        abi: Contract ABI (list of entries); anything else is treated as empty

    Returns:
        The first entry with type "constructor", or None
    """
    if not isinstance(abi, list):
        return None
    for item in abi:
        if isinstance(item, dict) and item.get("type") == "constructor":
            return item
    return None


def canonical_type(param: Dict[str, Any]) -> str:
    """
    Return the canonical ABI type string for a parameter.

    Tuple parameters are collapsed from their components, e.g.
    {"type": "tuple[]", "components": [uint256, address]} -> "(uint256,address)[]".
    """
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def infer_type(value: Any) -> str:
    """
    Infer a Solidity type for a constructor argument with no declared type.

    Raises:
        ValidationError: If the value has no obvious ABI representation
    """
    # bool first: bool is a subclass of int
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "uint256" if value >= 0 else "int256"
    if isinstance(value, str):
        if _ADDRESS_RE.fullmatch(value) and is_address(value):
            return "address"
        return "string"
    if isinstance(value, (bytes, bytearray)):
        return "bytes"
    raise ValidationError(
        "Unsupported constructor argument",
        details=f"Cannot infer ABI type for {type(value).__name__} value {value!r}",
    )


def coerce_argument(abi_type: str, value: Any) -> Any:
    """
    Convert a loosely-typed argument (e.g. from JSON) into what eth-abi expects.

    Raises:
        ValidationError: If value cannot represent abi_type
    """
    if _ARRAY_SUFFIX_RE.search(abi_type):
        element_type = _ARRAY_SUFFIX_RE.sub("", abi_type)
        if not isinstance(value, (list, tuple)):
            raise ValidationError(
                "Invalid constructor argument", details=f"Expected a list for {abi_type}, got {value!r}"
            )
        return [coerce_argument(element_type, v) for v in value]

    if abi_type.startswith("("):
        if not isinstance(value, (list, tuple)):
            raise ValidationError(
                "Invalid constructor argument", details=f"Expected a tuple for {abi_type}, got {value!r}"
            )
        # Members are validated by eth-abi
        return tuple(value)

    if abi_type == "address":
        if isinstance(value, str) and is_address(value):
            return to_checksum_address(value)
        raise ValidationError(
            "Invalid constructor argument", details=f"Not a 20-byte address: {value!r}"
        )

    if abi_type == "bool":
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        return value

    if _INT_TYPE_RE.fullmatch(abi_type):
        if isinstance(value, str):
            try:
                return int(value, 0)
            except ValueError as e:
                raise ValidationError(
                    "Invalid constructor argument", details=f"Not an integer: {value!r}"
                ) from e
        return value

    if abi_type == "bytes" or _FIXED_BYTES_RE.fullmatch(abi_type):
        if isinstance(value, str):
            hex_value = value[2:] if value.startswith("0x") else value
            try:
                return bytes.fromhex(hex_value)
            except ValueError as e:
                raise ValidationError(
                    "Invalid constructor argument", details=f"Not a hex byte string: {value!r}"
                ) from e
        return value

    return value


def resolve_constructor_types(abi: Any, args: Sequence[Any]) -> List[str]:
    """
    Determine the ABI types used to encode constructor args.

    Declared constructor inputs win; with no constructor entry the types are
    inferred from the argument values.

    Raises:
        ValidationError: If the declared input count does not match args
    """
    constructor = find_constructor(abi)
    if constructor is None:
        return [infer_type(arg) for arg in args]

    inputs = constructor.get("inputs", [])
    if len(inputs) != len(args):
        raise ValidationError(
            "Constructor argument count mismatch",
            details=f"Constructor expects {len(inputs)} argument(s), got {len(args)}",
        )
    return [canonical_type(param) for param in inputs]


def encode_constructor_args(abi: Any, args: Sequence[Any]) -> bytes:
    """
    ABI-encode constructor arguments.

    Args:
        abi: Contract ABI
        args: Constructor arguments (ints, bools, addresses, strings, ...)

    Returns:
        Encoded arguments, b"" when there are none

    Raises:
        ValidationError: If arguments cannot be encoded
    """
    if not args:
        return b""

    types = resolve_constructor_types(abi, args)
    values = [coerce_argument(t, v) for t, v in zip(types, args)]

    try:
        return encode(types, values)
    except (EncodingError, ParseError, TypeError, ValueError, OverflowError) as e:
        raise ValidationError("Invalid constructor arguments", details=str(e)) from e
