"""Brotli + BSON adapter for the AssetDecoder port."""

import logging
from datetime import UTC

import brotli
import bson
from bson.codec_options import CodecOptions
from bson.errors import BSONError
from pydantic import ValidationError

from resobooru.domain.photo.model.document import AssetDocument
from resobooru.domain.photo.port.asset_decoder import AssetDecoder
from resobooru.domain.shared.error import DecodeError

logger = logging.getLogger(__name__)

# Transport header in front of the Brotli stream; it is not part of the payload.
CONTAINER_PREFIX_LENGTH = 9

_CODEC_OPTIONS = CodecOptions(tz_aware=True, tzinfo=UTC)


class BrotliBsonDecoder(AssetDecoder):
    """Decodes ``.brson`` containers: 9-byte prefix, Brotli stream, BSON document."""

    def decode(self, blob: bytes, record_id: str | None = None) -> AssetDocument:
        payload = blob[CONTAINER_PREFIX_LENGTH:]
        try:
            decompressed = brotli.decompress(payload)
        except brotli.error as e:
            raise DecodeError(f"Unable to decompress asset: {e}", record_id=record_id) from e
        if not decompressed:
            raise DecodeError("Asset decompressed to zero bytes", record_id=record_id)

        try:
            raw = bson.decode(decompressed, codec_options=_CODEC_OPTIONS)
        except (BSONError, ValueError) as e:
            raise DecodeError(f"Malformed container document: {e}", record_id=record_id) from e

        try:
            document = AssetDocument.model_validate(raw)
        except ValidationError as e:
            error = e.errors()[0]
            path = ".".join(str(part) for part in error["loc"])
            raise DecodeError(
                f"Unexpected container layout at {path}: {error['msg']}",
                record_id=record_id,
                path=path,
            ) from e

        logger.debug(
            f"Decoded {len(blob)} byte asset ({len(decompressed)} bytes uncompressed, "
            f"{'legacy' if document.is_legacy else 'typed'} layout)"
        )
        return document


def encode_container(document: dict, prefix: bytes = b"\x00" * CONTAINER_PREFIX_LENGTH) -> bytes:
    """Build a container blob from a plain document. Inverse of ``decode``."""
    if len(prefix) != CONTAINER_PREFIX_LENGTH:
        raise ValueError(f"Container prefix must be {CONTAINER_PREFIX_LENGTH} bytes")
    return prefix + brotli.compress(bson.encode(document))
