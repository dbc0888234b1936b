"""Binary VDF (shortcuts.vdf) decoder.

Stdlib only, no imports from the rest of the plugin.

Layout: a sequence of entries inside an implicit root object. Each entry is a
one-byte type tag followed by a null-terminated key:

    0x00  nested object   key, entries..., 0x08
    0x01  string          key, null-terminated value
    0x02  int32           key, 4 bytes little-endian
    0x08  end of the current object (no key)

At the root, end of data is as good as a closing 0x08.
"""

import struct
from typing import Any, Dict, List, Tuple, Union

TYPE_OBJECT = 0x00
TYPE_STRING = 0x01
TYPE_INT32 = 0x02
TYPE_END = 0x08

Tree = Dict[str, Any]


class BinaryVdfDecodeError(ValueError):
    """Malformed binary VDF. offset is the byte position the problem was found at."""

    def __init__(self, offset: int, detail: str):
        super().__init__(f"{detail} at offset {offset}")
        self.offset = offset
        self.detail = detail


def _read_cstring(data: bytes, offset: int, what: str) -> Tuple[str, int]:
    end = data.find(b"\x00", offset)
    if end < 0:
        raise BinaryVdfDecodeError(offset, f"unterminated {what}")
    return data[offset:end].decode("utf-8", errors="replace"), end + 1


def loads(data: Union[bytes, bytearray]) -> Tree:
    """
    Decode binary VDF bytes into nested dicts (insertion order preserved).

    Leaves are str (0x01) or int (0x02, exposed as unsigned 32-bit).

    Raises:
        BinaryVdfDecodeError: on an unknown tag or truncated data. Nothing
            else is raised for any input.
    """
    data = bytes(data)
    root: Tree = {}
    # Iterative so deeply nested garbage can't hit the recursion limit
    stack: List[Tree] = [root]
    offset = 0
    length = len(data)

    while True:
        if offset >= length:
            if len(stack) > 1:
                raise BinaryVdfDecodeError(offset, "unexpected end of data inside object")
            return root

        tag_offset = offset
        tag = data[offset]
        offset += 1

        if tag == TYPE_END:
            stack.pop()
            if not stack:
                return root
            continue

        if tag not in (TYPE_OBJECT, TYPE_STRING, TYPE_INT32):
            raise BinaryVdfDecodeError(tag_offset, f"unknown type tag 0x{tag:02x}")

        key, offset = _read_cstring(data, offset, "key")
        current = stack[-1]

        if tag == TYPE_OBJECT:
            child: Tree = {}
            current[key] = child
            stack.append(child)
        elif tag == TYPE_STRING:
            value, offset = _read_cstring(data, offset, f"string value for '{key}'")
            current[key] = value
        else:
            if offset + 4 > length:
                raise BinaryVdfDecodeError(offset, f"truncated int32 value for '{key}'")
            current[key] = struct.unpack_from("<I", data, offset)[0]
            offset += 4


def load(path) -> Tree:
    """Read and decode a binary VDF file. OSError propagates to the caller."""
    with open(path, "rb") as f:
        return loads(f.read())
