import json
import logging
import struct
from typing import Any, Dict, Optional, Tuple

from errors import ArchiveHeaderError
from summary import SafetensorsSummary
from .base_model import BaseModel

logger = logging.getLogger(__name__)

HEADER_LENGTH_BYTES = 8
METADATA_KEY = "__metadata__"
ARCHITECTURE_KEY = "modelspec.architecture"
IMPLEMENTATION_KEY = "modelspec.implementation"

Header = Dict[str, Any]


def _reject_constant(name: str):
    # NaN / Infinity / -Infinity are not JSON
    raise ValueError(f"{name} is not a valid JSON value")


def _parse_metadata(raw: Any) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict) or not all(isinstance(v, str) for v in raw.values()):
        logger.warning("ignoring %s: expected a string-to-string object", METADATA_KEY)
        return {}
    return dict(raw)


def parse_header(data: bytes) -> Tuple[Dict[str, str], Header, int]:
    """
    Split a safetensors buffer into (metadata, tensors, header_end).

    Layout: u64 little-endian header length L, then L bytes of UTF-8 JSON,
    then the raw tensor payload, which is left untouched.
    """
    if len(data) < HEADER_LENGTH_BYTES:
        raise ArchiveHeaderError(
            f"file is only {len(data)} bytes, too short for a header length"
        )

    header_size = struct.unpack("<Q", data[:HEADER_LENGTH_BYTES])[0]
    header_end = HEADER_LENGTH_BYTES + header_size
    if header_end > len(data):
        raise ArchiveHeaderError(
            f"header claims {header_size:,} bytes but only "
            f"{len(data) - HEADER_LENGTH_BYTES:,} remain"
        )

    try:
        header = json.loads(
            data[HEADER_LENGTH_BYTES:header_end].decode("utf-8"),
            parse_constant=_reject_constant,
        )
    except (ValueError, RecursionError) as e:
        # ValueError covers UnicodeDecodeError and json.JSONDecodeError
        raise ArchiveHeaderError(f"header is not valid JSON: {e}") from e

    if not isinstance(header, dict):
        raise ArchiveHeaderError(
            f"header must be a JSON object, got {type(header).__name__}"
        )

    metadata = _parse_metadata(header.pop(METADATA_KEY, None))
    return metadata, header, header_end


class SafetensorsModel(BaseModel):

    def __init__(self, metadata: Dict[str, str], tensors: Header, payload_size: int = 0):
        self.metadata = metadata
        self.tensors = tensors
        self.payload_size = payload_size

    @classmethod
    def from_bytes(cls, data: bytes) -> "SafetensorsModel":
        metadata, tensors, header_end = parse_header(data)
        logger.debug(
            "safetensors header: %d tensors, %d metadata keys, %d payload bytes",
            len(tensors), len(metadata), len(data) - header_end,
        )
        return cls(metadata, tensors, payload_size=len(data) - header_end)

    @property
    def format_name(self) -> str:
        return "safetensors"

    def summary(self, filename: Optional[str] = None) -> SafetensorsSummary:
        return SafetensorsSummary(
            filename=filename,
            architecture=self.metadata.get(ARCHITECTURE_KEY),
            implementation=self.metadata.get(IMPLEMENTATION_KEY),
            metadata=dict(self.metadata),
            tensors=dict(self.tensors),
        )
