import os
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TypedDict
from dataclasses import dataclass, field


class ColorChannel(Enum):
    R = 0
    G = 1
    B = 2
    A = 3


class TextureMapType(Enum):
    NONE = "none"
    METALLIC = "metallic"
    OCCLUSION = "occlusion"
    ROUGHNESS = "roughness"


class TextureChoosingMode(Enum):
    FOLDERS = "folders" # Recursively searches the configured texture folders.
    SPECIFIC_TEXTURES = "textures" # Uses the explicit list of texture files.


class ImportSettings(TypedDict):
    srgb_texture: bool # Packed textures hold non-color data, so the color-space conversion is disabled.
    source_textures: List[str] # File names of the maps used to generate the packed texture.


@dataclass
class TextureAsset:
    name: str # Case-sensitive file name without extension, e.g., "Wood_metal".
    path: str # Absolute file path.
    resolution: Tuple[int, int] # Texture resolution read from the file.

    @property
    def folder(self) -> str:
        return os.path.dirname(self.path)


@dataclass
class TextureSetWithMaps:
    texture_set_name: str # Case-sensitive texture set name, e.g., "Wood".
    output_folder: str = "" # Folder the packed texture is written to.
    texture_dimensions: Tuple[int, int] = (0, 0) # Taken from the first texture assigned to the set.
    inputs: List[Optional[TextureAsset]] = field(default_factory=lambda: [None, None, None, None]) # Source texture per output channel: R, G, B, A.

    @property
    def has_dimensions(self) -> bool:
        return self.texture_dimensions != (0, 0)


@dataclass
class MaterialAsset:
    name: str # Material name, from the document or the file name.
    path: str # Absolute path to the .mat.json file.
    shader: str # Shader name assigned to the material.
    textures: Dict[str, str] = field(default_factory=dict) # Texture property name > texture path relative to the material folder.
    document: Dict[str, Any] = field(default_factory=dict) # Raw JSON document, so unknown keys survive a save.


@dataclass
class CombineSettings:
    mode: TextureChoosingMode = TextureChoosingMode.FOLDERS
    texture_folders: List[str] = field(default_factory=lambda: ["Assets/techart/maps"])
    textures_to_combine: List[str] = field(default_factory=list)
    metallic_target_channel: ColorChannel = ColorChannel.R
    occlusion_target_channel: ColorChannel = ColorChannel.G
    roughness_target_channel: ColorChannel = ColorChannel.B
    defaults: Tuple[float, float, float, float] = (0.0, 1.0, 0.0, 1.0) # Fallback per channel when no texture supplies it; occlusion and alpha default to white.
    metallic_suffixes: List[str] = field(default_factory=lambda: ["_metal"])
    occlusion_suffixes: List[str] = field(default_factory=lambda: ["_AmbientOcclusion", "_AO"])
    roughness_suffixes: List[str] = field(default_factory=lambda: ["_rough"])
    material_folders: List[str] = field(default_factory=lambda: ["Assets/techart/materials"])
    shader_for_packed_textures: str = ""
    shader_property_for_packed_textures: str = "_MetOccRoughMap"
    file_type: str = "png"
    channel_sources: Tuple[ColorChannel, ColorChannel, ColorChannel, ColorChannel] = (ColorChannel.R, ColorChannel.R, ColorChannel.R, ColorChannel.R) # Channel read from each source texture.
    multipliers: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    inverts: Tuple[bool, bool, bool, bool] = (False, False, False, False)
    show_details: bool = False

    def target_channel(self, map_type: TextureMapType) -> ColorChannel:
        if map_type is TextureMapType.METALLIC:
            return self.metallic_target_channel
        if map_type is TextureMapType.OCCLUSION:
            return self.occlusion_target_channel
        if map_type is TextureMapType.ROUGHNESS:
            return self.roughness_target_channel
        return ColorChannel.R


@dataclass
class CombineContext:
    settings: CombineSettings
    current_folder: str = "" # Folder currently being processed in folder mode.
    texture_sets: Dict[Tuple[str, str], TextureSetWithMaps] = field(default_factory=dict) # (output folder, set name) > set, in first-seen order.
    packed_textures: List[str] = field(default_factory=list) # Paths of all packed textures written during the run.
    rebound_materials: List[str] = field(default_factory=list) # Paths of all materials that were reassigned.
