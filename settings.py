
""" Texture Combiner settings. """

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from backend.texture_classes import ColorChannel, CombineSettings, TextureChoosingMode
from utils import log


def _as_bool(v) -> bool:
# Converts .json input (bool/int/str/None) to a real bool;
# Avoids the case where a non-empty string like "False" is treated as True.

    if isinstance(v, bool): return v
    if isinstance(v, str):
        input_str = v.strip().lower()
        if input_str == "": return False
        return input_str in ("1","true","yes","on")
    return bool(v)


def _as_str_list(v) -> List[str]:
# Accepts a single string or a list from .json; drops non-string entries but keeps empty strings, so they can be reported later.

    if v is None: return []
    if isinstance(v, str): return [v]
    return [item for item in v if isinstance(item, str)]


def _as_channel(v) -> ColorChannel:
# Converts "R"/"g"/0..3 into a ColorChannel.

    if isinstance(v, ColorChannel): return v
    if isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 3:
        return ColorChannel(v)
    if isinstance(v, str) and v.strip().upper() in ColorChannel.__members__:
        return ColorChannel[v.strip().upper()]
    log(f"Aborted: invalid target channel '{v}'. Supported: R, G, B, A", "error")
    raise SystemExit(1)


def _as_defaults(v) -> Tuple[float, float, float, float]:
# Fallback values have to be 4 floats in the 0-1 range, one per output channel.

    try:
        values = tuple(float(value) for value in v)
    except (TypeError, ValueError):
        values = ()
    if len(values) != 4 or any(value < 0.0 or value > 1.0 for value in values):
        log(f"Aborted: DEFAULTS must be 4 values in the 0-1 range, got: {v}", "error")
        raise SystemExit(1)
    return values


def _as_mode(v) -> TextureChoosingMode:
    mode_name = str(v or "").strip().lower()
    for mode in TextureChoosingMode:
        if mode.value == mode_name:
            return mode
    log(f"Warning: Unknown MODE '{v}'. Defaulting to '{TextureChoosingMode.FOLDERS.value}'.", "warn")
    return TextureChoosingMode.FOLDERS




#                                           === Loading JSON file ===

def load_config_data(config_path: Optional[str] = None) -> Dict[str, Any]:
# Reads the .json config; falls back to built-in defaults if the file is missing.

    config_path = config_path or os.environ.get("TEXTURE_COMBINER_CONFIG") or os.path.join(os.path.dirname(__file__), "config.json")
    if not os.path.isfile(config_path):
        log(f"Warning: config file not found: {config_path}. Using built-in defaults.", "warn")
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


_config_data: Dict[str, Any] = load_config_data()
# Config keys:
# MODE - "folders" searches TEXTURE_FOLDERS recursively, "textures" uses the files listed in TEXTURES_TO_COMBINE.
# METALLIC/OCCLUSION/ROUGHNESS_TARGET_CHANNEL - output channel (R, G, B, A) for each map type.
# DEFAULTS - fallback value per channel when a texture is missing; occlusion and alpha default to white.
# METALLIC/OCCLUSION/ROUGHNESS_SUFFIXES - case-insensitive phrases identifying each map type in a texture name.
# MATERIAL_FOLDERS - folders searched recursively for .mat.json materials to reassign.
# SHADER_FOR_PACKED_TEXTURES - shader assigned to materials using a packed texture.
# SHADER_PROPERTY_FOR_PACKED_TEXTURES - material texture property receiving the packed texture.
# FILE_TYPE - file type of generated packed textures; lossless only.
# SHOW_DETAILS - shows details like exact resolution when printing logs.




#                                           === Constants ===

ALLOWED_FILE_TYPES: Tuple[str, ...] = ("png", "jpg", "jpeg", "tga") # Source textures.
RAW_SOURCE_TYPES: Tuple[str, ...] = ("exr",) # Float sources, read only if OpenEXR and NumPy are available.
OUTPUT_FILE_TYPES: Tuple[str, ...] = ("png", "tga") # Packed textures hold data, so only lossless formats with alpha.
MATERIAL_EXTENSION: str = ".mat.json"
IMPORT_SETTINGS_EXTENSION: str = ".import.json"
SEPARATOR: str = "_"
PACKED_SUFFIX: str = "_packed"

CHANNEL_SOURCES: Tuple[ColorChannel, ...] = (ColorChannel.R, ColorChannel.R, ColorChannel.R, ColorChannel.R) # Channel read from each source texture.
MULTIPLIERS: Tuple[float, ...] = (1.0, 1.0, 1.0, 1.0)
INVERTS: Tuple[bool, ...] = (False, False, False, False)




def build_combine_settings(config_data: Dict[str, Any]) -> CombineSettings:
# Builds typed settings for the pipeline from the raw .json data. Invalid channels or defaults abort the run.

    defaults = CombineSettings()

    return CombineSettings(
        mode = _as_mode(config_data.get("MODE", defaults.mode.value)),
        texture_folders = _as_str_list(config_data.get("TEXTURE_FOLDERS", defaults.texture_folders)),
        textures_to_combine = _as_str_list(config_data.get("TEXTURES_TO_COMBINE", defaults.textures_to_combine)),
        metallic_target_channel = _as_channel(config_data.get("METALLIC_TARGET_CHANNEL", "R")),
        occlusion_target_channel = _as_channel(config_data.get("OCCLUSION_TARGET_CHANNEL", "G")),
        roughness_target_channel = _as_channel(config_data.get("ROUGHNESS_TARGET_CHANNEL", "B")),
        defaults = _as_defaults(config_data.get("DEFAULTS", defaults.defaults)),
        metallic_suffixes = _as_str_list(config_data.get("METALLIC_SUFFIXES", defaults.metallic_suffixes)),
        occlusion_suffixes = _as_str_list(config_data.get("OCCLUSION_SUFFIXES", defaults.occlusion_suffixes)),
        roughness_suffixes = _as_str_list(config_data.get("ROUGHNESS_SUFFIXES", defaults.roughness_suffixes)),
        material_folders = _as_str_list(config_data.get("MATERIAL_FOLDERS", defaults.material_folders)),
        shader_for_packed_textures = (config_data.get("SHADER_FOR_PACKED_TEXTURES", "") or "").strip(),
        shader_property_for_packed_textures = config_data.get("SHADER_PROPERTY_FOR_PACKED_TEXTURES", defaults.shader_property_for_packed_textures),
        file_type = config_data.get("FILE_TYPE", defaults.file_type),
        channel_sources = CHANNEL_SOURCES,
        multipliers = MULTIPLIERS,
        inverts = INVERTS,
        show_details = _as_bool(config_data.get("SHOW_DETAILS", False)),
    )


COMBINE_SETTINGS: CombineSettings = build_combine_settings(_config_data)
