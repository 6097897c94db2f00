"""IO subpackage for getting images in.

- image_source: paste / file / URL inputs decoded into SourceImage
"""
from .image_source import (
    ImageSource,
    SourceImage,
    decode_image_bytes,
    fetch_reference,
    looks_like_image_reference,
)

__all__ = [
    "ImageSource",
    "SourceImage",
    "decode_image_bytes",
    "fetch_reference",
    "looks_like_image_reference",
]
