METADATA_MAGIC = b'\xab\xcd\xefMaxMind.com'
METADATA_SEARCH_SIZE = 128 * 1024
DATA_SECTION_SEPARATOR_SIZE = 16
MAXIMUM_DATA_STRUCTURE_DEPTH = 512

TYPE_EXTENDED = 0
TYPE_POINTER = 1
TYPE_UTF8 = 2
TYPE_DOUBLE = 3
TYPE_BYTES = 4
TYPE_UINT16 = 5
TYPE_UINT32 = 6
TYPE_MAP = 7
TYPE_INT32 = 8
TYPE_UINT64 = 9
TYPE_UINT128 = 10
TYPE_ARRAY = 11
TYPE_DATA_CACHE_CONTAINER = 12
TYPE_END_MARKER = 13
TYPE_BOOLEAN = 14
TYPE_FLOAT = 15

# Largest payload, in bytes, of each unsigned/signed integer type.
INTEGER_SIZES = {
    TYPE_UINT16: 2,
    TYPE_UINT32: 4,
    TYPE_INT32: 4,
    TYPE_UINT64: 8,
    TYPE_UINT128: 16,
}

MODE_AUTO = 0
MODE_MMAP_EXT = 1
SUPPORTED_MODES = (MODE_AUTO, MODE_MMAP_EXT)
