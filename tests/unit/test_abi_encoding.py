"""Unit tests for constructor argument encoding."""

import pytest
from eth_abi import encode

from multichain_deployments.abi import (
    canonical_type,
    coerce_argument,
    encode_constructor_args,
    find_constructor,
    infer_type,
    resolve_constructor_types,
)
from multichain_deployments.exceptions import ValidationError

OWNER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

TOKEN_ABI = [
    {"type": "function", "name": "totalSupply", "inputs": [], "outputs": []},
    {
        "type": "constructor",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "supply", "type": "uint256"},
            {"name": "paused", "type": "bool"},
        ],
    },
]


class TestFindConstructor:
    """Test the find_constructor function."""

    def test_finds_constructor_entry(self):
        """Test that the constructor entry is returned."""
        assert find_constructor(TOKEN_ABI)["type"] == "constructor"

    @pytest.mark.parametrize("abi", [None, [], {}, [{"type": "function"}]])
    def test_missing_constructor(self, abi):
        """Test that ABIs without a constructor yield None."""
        assert find_constructor(abi) is None


class TestCanonicalType:
    """Test the canonical_type function."""

    def test_plain_type(self):
        """Test that non-tuple types are returned unchanged."""
        assert canonical_type({"type": "uint8[]"}) == "uint8[]"

    def test_tuple_array(self):
        """Test that tuple components are collapsed with the array suffix kept."""
        param = {
            "type": "tuple[]",
            "components": [{"type": "uint256"}, {"type": "address"}],
        }
        assert canonical_type(param) == "(uint256,address)[]"


class TestInferType:
    """Test the infer_type function."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, "bool"),
            (42, "uint256"),
            (-1, "int256"),
            (OWNER, "address"),
            ("hello", "string"),
            (b"\x01\x02", "bytes"),
        ],
    )
    def test_inferred_types(self, value, expected):
        """Test that plain values map to their natural ABI types."""
        assert infer_type(value) == expected

    def test_unsupported_value_raises(self):
        """Test that values with no ABI representation are rejected."""
        with pytest.raises(ValidationError):
            infer_type({"nested": "object"})


class TestCoerceArgument:
    """Test the coerce_argument function."""

    def test_integer_strings(self):
        """Test that decimal and hex strings become integers."""
        assert coerce_argument("uint256", "1000") == 1000
        assert coerce_argument("uint256", "0x10") == 16

    def test_bool_strings(self):
        """Test that "true"/"false" become booleans."""
        assert coerce_argument("bool", "true") is True
        assert coerce_argument("bool", "False") is False

    def test_address_is_checksummed(self):
        """Test that lower-case addresses are accepted and checksummed."""
        assert coerce_argument("address", OWNER.lower()) == OWNER

    def test_bad_address_raises(self):
        """Test that a short address is rejected."""
        with pytest.raises(ValidationError):
            coerce_argument("address", "0x1234")

    def test_bytes_from_hex(self):
        """Test that hex strings become bytes."""
        assert coerce_argument("bytes32", "0x" + "11" * 32) == b"\x11" * 32

    def test_array_elements(self):
        """Test that array elements are coerced individually."""
        assert coerce_argument("uint256[]", ["1", "2"]) == [1, 2]

    def test_array_requires_list(self):
        """Test that a scalar is rejected for an array type."""
        with pytest.raises(ValidationError):
            coerce_argument("uint256[]", "1")


class TestResolveConstructorTypes:
    """Test the resolve_constructor_types function."""

    def test_declared_types_win(self):
        """Test that declared constructor inputs are used."""
        assert resolve_constructor_types(TOKEN_ABI, [OWNER, 1, False]) == [
            "address",
            "uint256",
            "bool",
        ]

    def test_count_mismatch_raises(self):
        """Test that the argument count must match the constructor."""
        with pytest.raises(ValidationError) as exc_info:
            resolve_constructor_types(TOKEN_ABI, [OWNER])

        assert "expects 3" in exc_info.value.details

    def test_types_inferred_without_abi(self):
        """Test that types are inferred when no constructor is declared."""
        assert resolve_constructor_types([], [1, "x"]) == ["uint256", "string"]


class TestEncodeConstructorArgs:
    """Test the encode_constructor_args function."""

    def test_no_args_is_empty(self):
        """Test that no arguments encode to nothing."""
        assert encode_constructor_args(TOKEN_ABI, []) == b""

    def test_matches_eth_abi(self):
        """Test that declared arguments encode exactly as eth-abi does."""
        encoded = encode_constructor_args(TOKEN_ABI, [OWNER.lower(), "1000000", "false"])
        assert encoded == encode(["address", "uint256", "bool"], [OWNER, 1000000, False])

    def test_inferred_args_are_encoded(self):
        """Test that arguments without an ABI still produce data."""
        encoded = encode_constructor_args([], [7])
        assert encoded == (7).to_bytes(32, "big")

    def test_out_of_range_raises(self):
        """Test that values outside the declared type are rejected."""
        abi = [{"type": "constructor", "inputs": [{"name": "x", "type": "uint8"}]}]
        with pytest.raises(ValidationError):
            encode_constructor_args(abi, [256])
