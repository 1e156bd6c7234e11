"""Image decoding and luminance sampling."""

from .image_loader import as_pixel_array, decode_data_url, decode_image_bytes, load_image
from .luminance import brightness_map, extract_brightness, sample_image

__all__ = [
    "as_pixel_array",
    "decode_data_url",
    "decode_image_bytes",
    "load_image",
    "brightness_map",
    "extract_brightness",
    "sample_image",
]
