""" Texture utilities. Separate module to keep the Texture Combiner pipeline backend-agnostic. """

import os
from typing import Any, Iterable, List, Optional, Set
from functools import lru_cache
import importlib.util

from backend.image_lib import (ImageObject, close_image, from_array_u8)


LOG_TYPES: list[str] = ["info", "warn", "error", "skip", "complete"]
# Defines log types; all of them are printed to the console.

def log(message: str, message_kind: LOG_TYPES = "info") -> None:
# Maps different log types.

    if message == "":
        print("")
        return

    if message_kind not in LOG_TYPES:
        message_kind = "info"

    if message_kind == "info":
        print(f"   {message}")
    elif message_kind == "warn":
        print(f"⚠️ {message}")
    elif message_kind == "error":
        print(f"⛔ {message}")
    elif message_kind == "skip":
        print(f"❌ {message}")
    elif message_kind == "complete":
        print(f"✅ {message}")
    else:
        print(message)  # fallback

    # Print styles:
    # info: 3 whitespaces + message
    # warn: ⚠️ + message
    # error: ⛔ + message
    # skip: ❌ + message
    # complete: ✅ + message


def asset_name(path: str) -> str:
# Asset name is the file name without extension, e.g., "maps/Wood_metal.png" > "Wood_metal".
# Handles double extensions used by materials, e.g., "Wood.mat.json" > "Wood".

    file_name: str = os.path.basename(path)
    for double_extension in (".mat.json", ".import.json"):
        if file_name.lower().endswith(double_extension):
            return file_name[:-len(double_extension)]
    return os.path.splitext(file_name)[0]


@lru_cache(maxsize=1)
def check_exr_libraries() -> bool:
# Checks if OpenEXR and Numpy are installed for processing the .exr files.

    try:
        has_openexr = (importlib.util.find_spec("OpenEXR") is not None)
        has_numpy   = (importlib.util.find_spec("numpy") is not None)
        return bool(has_openexr and has_numpy)
    except (ImportError, ValueError):
        return False


def close_image_files(images: Iterable[Optional[object]]) -> None:
# Safely closes all opened images even if there is an error during image processing.

    processed_ids: Set[int] = set()
    for image in images:
        if image is None:
            continue
        image_id = id(image)
        if image_id in processed_ids:
            continue
        processed_ids.add(image_id)
        try:
            close_image(image) # Function from image_lib
        except (OSError, ValueError):
            pass


def load_exr_image(source_exr_path: str) -> ImageObject:
# Reads a 32bit float .exr image into an 8bit int image in memory using OpenEXR and Numpy.
# Packed maps hold linear data, so no sRGB curve is applied.

    import numpy as np
    import OpenEXR
    import Imath

    from numpy.typing import NDArray

# Preparing the image:
    file: OpenEXR.InputFile = OpenEXR.InputFile(source_exr_path)
    try:
        hdr: dict[str, Any] = file.header()
        data_window: Imath.Box2i = hdr['dataWindow']
        width: int = data_window.max.x - data_window.min.x + 1
        height: int = data_window.max.y - data_window.min.y + 1
        float_pixel_data: Imath.PixelType = Imath.PixelType(Imath.PixelType.FLOAT) # Setting pixel data type to float.

        channels_list: list[str] = list(hdr['channels'].keys())
        channel_names: dict[str, str] = {channel.lower(): channel for channel in channels_list}
        # Gets names of all available channels.

        def read_channel(channel_name: str) -> NDArray[np.float32]:
        # Reads chanel as a 32b float and restructure its pixels into 2D array W*H.
            return np.frombuffer(file.channel(channel_name, float_pixel_data), dtype=np.float32).reshape(height, width)

        def to_u8(values: NDArray[np.float32]) -> NDArray[np.uint8]:
            return np.rint(np.clip(values, 0, 1) * 255.0).astype("uint8")


# Processing the image:
        if all(k in channel_names for k in ("r", "g", "b")):
            planes: List[NDArray[np.float32]] = [read_channel(channel_names[k]) for k in ("r", "g", "b")]
            if "a" in channel_names:
                planes.append(read_channel(channel_names["a"]))
            return from_array_u8(to_u8(np.stack(planes, axis=-1)))
        # Converting the RGB(A) file.

        return from_array_u8(to_u8(read_channel(channels_list[0])))
        # In case the full RGB is missing, it extracts the first available channel as grayscale.
    finally:
        file.close()


def relative_path(path: str, start_directory: str) -> str:
# Relative path with forward slashes, as stored in material documents.
    return os.path.relpath(path, start_directory).replace("\\", "/")
