
""" Finds Metallic, Occlusion and Roughness textures, combines them into the channels of a single packed texture and assigns it to materials. """

import os
import sys
import time
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from backend.image_lib import (ImageObject, extract_source_channel, from_array_u8, get_size, load_pixels, merge_channels,
                               new_image_grayscale, resize, to_array_f32)

from backend.texture_classes import (ColorChannel, CombineContext, CombineSettings, MaterialAsset, TextureAsset,
                                     TextureChoosingMode, TextureMapType, TextureSetWithMaps)

from backend.io_backend import (list_materials_in_folders, list_textures_in_folder, load_material, load_texture_asset,
                                material_texture_path, open_texture_image, save_material, save_packed_texture)

from settings import (COMBINE_SETTINGS, OUTPUT_FILE_TYPES, SEPARATOR)

from utils import (asset_name, close_image_files, log)




# Basic data structure bundling textures into texture sets, keyed by output folder and set name:
# context.texture_sets = {
#     ("/project/maps", "Wood"): TextureSetWithMaps(
#         texture_set_name="Wood",
#         output_folder="/project/maps",
#         texture_dimensions=(1024, 1024),
#         inputs=[
#             TextureAsset(name="Wood_metal", path="/project/maps/Wood_metal.png", resolution=(1024, 1024)), # R
#             TextureAsset(name="Wood_AO", path="/project/maps/Wood_AO.png", resolution=(1024, 1024)), # G
#             TextureAsset(name="Wood_rough", path="/project/maps/Wood_rough.png", resolution=(1024, 1024)), # B
#             None, # A - filled with the default value
#         ])}


#                                           === Pipeline ===


def texture_combiner(combine_settings: Optional[CombineSettings] = None) -> List[str]:
# Runs the pipeline in the configured mode. Returns paths of all created packed textures.

    combine_settings = combine_settings or COMBINE_SETTINGS
    start_time = time.time()

    _validate_config(combine_settings)

    if combine_settings.mode is TextureChoosingMode.SPECIFIC_TEXTURES:
        context = process_specific_texture_assets(combine_settings.textures_to_combine, combine_settings)
    else:
        context = process_textures_in_folders(combine_settings.texture_folders, combine_settings)

    log("", "info")  # Visual separator
    if context.packed_textures:
        log(f"All processing done. Created {len(context.packed_textures)} packed texture(s), reassigned {len(context.rebound_materials)} material(s).", "complete")
    else:
        log("All processing done. No packed textures were created.", "complete")

    if combine_settings.show_details:
        elapsed_time = time.time() - start_time
        log(f"Execution time: {elapsed_time:.2f} seconds", "info")
    return context.packed_textures


def process_textures_in_folders(folder_paths: Sequence[str], combine_settings: Optional[CombineSettings] = None) -> CombineContext:
# Finds textures in each folder and its subfolders, then packs and assigns the sets found in that folder.

    context = CombineContext(settings=combine_settings or COMBINE_SETTINGS)
    if not folder_paths:
        log("Aborted: Please provide at least one folder path.", "error")
        return context

    for folder_path in folder_paths:
        if not folder_path or not folder_path.strip():
            log("Empty folder path - skipping.", "error")
            continue
        if not os.path.isdir(folder_path):
            log(f"Folder not found: {folder_path} - skipping.", "error")
            continue

        context.current_folder = os.path.abspath(folder_path)
        context.texture_sets = {}
        # Sets are packed once per folder.

        grouper = TextureGrouper(context)
        for texture_path in list_textures_in_folder(context.current_folder):
            texture = load_texture_asset(texture_path)
            if texture is None:
                continue
            grouper.process_texture(texture)

        create_packed_textures_and_assign_to_materials(context)
    return context


def process_specific_texture_assets(texture_paths: Sequence[Optional[str]], combine_settings: Optional[CombineSettings] = None) -> CombineContext:
# Groups the explicitly listed textures; each packed texture is saved in the folder of its set's textures.

    context = CombineContext(settings=combine_settings or COMBINE_SETTINGS)
    if not texture_paths:
        log("Aborted: Please provide textures.", "error")
        return context

    grouper = TextureGrouper(context)
    for texture_path in texture_paths:
        if not texture_path:
            log("Null texture reference - skipping.", "error")
            continue
        texture = load_texture_asset(texture_path)
        if texture is None:
            continue
        context.current_folder = texture.folder
        grouper.process_texture(texture)

    create_packed_textures_and_assign_to_materials(context)
    return context


def create_packed_textures_and_assign_to_materials(context: CombineContext) -> None:

    for texture_set in list(context.texture_sets.values()):
        log(f"\nProcessing: {texture_set.texture_set_name}", "info")
        packed_image = create_packed_image(texture_set, context.settings)
        if packed_image is None:
            continue
        # Sets without any valid texture have no dimensions and are skipped.

        try:
            packed_texture = save_packed_texture(packed_image, texture_set, context)
        finally:
            close_image_files([packed_image])
        if packed_texture is None:
            continue

        context.packed_textures.append(packed_texture.path)
        log(f"Created: {os.path.basename(packed_texture.path)}" + (f" ({packed_texture.resolution[0]}x{packed_texture.resolution[1]})" if context.settings.show_details else ""), "complete")

        rebound_materials = assign_packed_texture_to_materials(packed_texture, texture_set, context.settings)
        context.rebound_materials.extend(material.path for material in rebound_materials)




#                                       === Validation ===

def _validate_config(combine_settings: CombineSettings) -> None:
# Runs initial validation for the settings; aborts on values the pipeline cannot work with.

    file_type: str = (combine_settings.file_type or "").strip().lower().lstrip(".")
    if file_type not in OUTPUT_FILE_TYPES:
        log(f"Aborted: Invalid FILE_TYPE '{combine_settings.file_type}'. Supported: {', '.join(OUTPUT_FILE_TYPES)}", "error")
        raise SystemExit(1)

    if len(combine_settings.defaults) != 4 or any(value < 0.0 or value > 1.0 for value in combine_settings.defaults):
        log(f"Aborted: DEFAULTS must be 4 values in the 0-1 range, got: {combine_settings.defaults}", "error")
        raise SystemExit(1)

    target_channels: Dict[ColorChannel, str] = {}
    for map_type in (TextureMapType.METALLIC, TextureMapType.OCCLUSION, TextureMapType.ROUGHNESS):
        channel = combine_settings.target_channel(map_type)
        if channel in target_channels:
            log(f"Warning: {map_type.value} and {target_channels[channel]} both target channel {channel.name}; the first texture found wins.", "warn")
        target_channels.setdefault(channel, map_type.value)

    if not combine_settings.shader_for_packed_textures:
        log("Warning: No shader for packed textures set - materials will not be reassigned.", "warn")
    return




#                                         === Classification ===

def try_getting_texture_set_name(texture_name: str, separator: str = SEPARATOR) -> str:
# Strips the trailing map suffix at the last separator, e.g., "Rock_metal" > "Rock".
# A name without a separator, or with the only separator at the start, is its own set name.

    index_of_last_separator: int = texture_name.rfind(separator)
    if index_of_last_separator <= 0:
        return texture_name
    return texture_name[:index_of_last_separator]


def check_if_texture_name_contains_phrase(texture_name: str, phrases_to_check: Sequence[str]) -> bool:
# Case-insensitive substring match against any of the given phrases; empty phrases never match.

    texture_name_lower: str = texture_name.casefold()
    return any(phrase and phrase.casefold() in texture_name_lower for phrase in phrases_to_check)


def get_texture_map_type_by_suffix(texture_name: str, combine_settings: Optional[CombineSettings] = None) -> TextureMapType:
# Checks map types in a fixed order - metallic, occlusion, roughness; the first match wins.

    combine_settings = combine_settings or COMBINE_SETTINGS
    if check_if_texture_name_contains_phrase(texture_name, combine_settings.metallic_suffixes):
        return TextureMapType.METALLIC
    if check_if_texture_name_contains_phrase(texture_name, combine_settings.occlusion_suffixes):
        return TextureMapType.OCCLUSION
    if check_if_texture_name_contains_phrase(texture_name, combine_settings.roughness_suffixes):
        return TextureMapType.ROUGHNESS
    return TextureMapType.NONE




#                                         === Grouping ===

class TextureGrouper:
    """Collects classified textures into the context's texture sets.

    Keeps the currently processed set while textures of one set arrive in a row, and
    switches to the existing set of that name (or creates one) when the name changes.
    Every set is registered once, in the order its first map was found.
    """

    def __init__(self, context: CombineContext):
        self.context = context
        self.currently_processed_texture_set: Optional[TextureSetWithMaps] = None

    def process_texture(self, texture: TextureAsset) -> Optional[TextureSetWithMaps]:
        # Returns the set the texture was assigned to, or None if it isn't a known map type.
        texture_map_type = get_texture_map_type_by_suffix(texture.name, self.context.settings)
        if texture_map_type is TextureMapType.NONE:
            if self.context.settings.show_details:
                log(f"Skipping '{texture.name}': no matching map suffix.", "skip")
            return None

        texture_set_name = try_getting_texture_set_name(texture.name)
        output_folder = texture.folder
        current = self.currently_processed_texture_set
        if current is None or current.texture_set_name != texture_set_name or current.output_folder != output_folder:
            current = self.context.texture_sets.get((output_folder, texture_set_name))
            if current is None:
                current = TextureSetWithMaps(texture_set_name=texture_set_name, output_folder=output_folder)
                self.context.texture_sets[(output_folder, texture_set_name)] = current
            self.currently_processed_texture_set = current

        self.assign_texture_by_texture_map_type(current, texture_map_type, texture)
        return current

    def assign_texture_by_texture_map_type(self, texture_set: TextureSetWithMaps, texture_map_type: TextureMapType, texture: TextureAsset) -> None:
        channel_input: int = self.context.settings.target_channel(texture_map_type).value
        existing = texture_set.inputs[channel_input]
        if existing is not None:
            log(f"Warning: '{texture.name}' ignored, channel {ColorChannel(channel_input).name} of '{texture_set.texture_set_name}' already uses '{existing.name}'.", "warn")
            return

        texture_set.inputs[channel_input] = texture
        if not texture_set.has_dimensions:
            texture_set.texture_dimensions = texture.resolution




#                                              === Packing ===

def _pack_channel(source: ImageObject, multiplier: float, invert: bool) -> ImageObject:
# Scales and optionally inverts an 8bit channel.
    if multiplier == 1.0 and not invert:
        return source
    values = np.clip(to_array_f32(source) * multiplier, 0.0, 1.0)
    if invert:
        values = 1.0 - values
    return from_array_u8(np.rint(values * 255.0))


def default_channel_value(default: float) -> int:
    return int(round(min(max(default, 0.0), 1.0) * 255))


def create_packed_image(texture_set: TextureSetWithMaps, combine_settings: Optional[CombineSettings] = None) -> Optional[ImageObject]:
# Combines the set's inputs into the RGBA channels of a new image.
# Channels without a source texture are filled with the default value. Returns None if the set has no dimensions.

    combine_settings = combine_settings or COMBINE_SETTINGS
    if not texture_set.has_dimensions:
        return None

    texture_dimensions: Tuple[int, int] = texture_set.texture_dimensions
    opened_images: List[Optional[ImageObject]] = []
    channels: List[ImageObject] = []

    try:
        for channel_input in range(4):
            texture = texture_set.inputs[channel_input]
            default_value = default_channel_value(combine_settings.defaults[channel_input])

            if texture is None:
                channels.append(new_image_grayscale(texture_dimensions, default_value))
                continue

            try:
                source = open_texture_image(texture.path)
                opened_images.append(source)
                load_pixels(source)

                if get_size(source) != texture_dimensions:
                    if combine_settings.show_details:
                        width, height = get_size(source)
                        log(f"Rescaling {texture.name} ({width}x{height}) to {texture_dimensions[0]}x{texture_dimensions[1]}", "info")
                    else:
                        log(f"Texture set resolution mismatch: rescaling {texture.name}.", "warn")
                    source = resize(source, texture_dimensions)
                    opened_images.append(source)

                channel = extract_source_channel(source, combine_settings.channel_sources[channel_input].name)
                opened_images.append(channel)
            except (OSError, ValueError) as error:
                log(f"Warning: failed to read '{texture.path}' ({error}), will use default.", "warn")
                channels.append(new_image_grayscale(texture_dimensions, default_value))
                continue

            channels.append(_pack_channel(channel, combine_settings.multipliers[channel_input], combine_settings.inverts[channel_input]))

        return merge_channels("RGBA", channels)

    finally:
        close_image_files(opened_images + channels)
    # Source images and intermediate channels are closed even if packing fails; the merged image is a new copy.




#                                        === Material assignment ===

def find_matching_texture(material: MaterialAsset, texture_set_name: str) -> Optional[str]:
# Returns the name of the first texture bound to the material that belongs to the set, if any.
    for texture_reference in material.textures.values():
        texture_name = asset_name(texture_reference)
        if texture_set_name in texture_name:
            return texture_name
    return None


def assign_packed_texture_to_materials(packed_texture: TextureAsset, texture_set: TextureSetWithMaps, combine_settings: Optional[CombineSettings] = None) -> List[MaterialAsset]:
# Swaps shader and sets the packed texture on every material in the material folders that uses a texture of this set.
# Each material is saved on its own; a failure doesn't revert the ones already saved.

    combine_settings = combine_settings or COMBINE_SETTINGS
    if not combine_settings.shader_for_packed_textures:
        log(f"Warning: no shader set for packed textures, materials using '{texture_set.texture_set_name}' are left unchanged.", "warn")
        return []

    rebound_materials: List[MaterialAsset] = []
    for material_path in list_materials_in_folders(combine_settings.material_folders):
        material = load_material(material_path)
        if material is None:
            continue

        matching_texture = find_matching_texture(material, texture_set.texture_set_name)
        if matching_texture is None:
            continue
        log(f"Processing: {matching_texture}", "info")

        material.shader = combine_settings.shader_for_packed_textures
        material.textures[combine_settings.shader_property_for_packed_textures] = material_texture_path(material, packed_texture.path)
        if save_material(material):
            log(f"Assigned packed texture to: {material.name} material", "complete")
            rebound_materials.append(material)
    return rebound_materials




#                                         === CLI entry point ===

def main(argv: Optional[Sequence[str]] = None) -> None:
    arguments = [argument for argument in (sys.argv[1:] if argv is None else argv) if argument.strip()]
    # Folders or texture files given in the CLI override the ones from the config.

    combine_settings = COMBINE_SETTINGS
    if arguments:
        folders = [argument for argument in arguments if os.path.isdir(argument)]
        files = [argument for argument in arguments if not os.path.isdir(argument)]
        if folders and files:
            log("Aborted: Provide either folders or texture files, not both.", "error")
            sys.exit(1)
        if folders:
            combine_settings = _replace_inputs(combine_settings, TextureChoosingMode.FOLDERS, folders)
        else:
            combine_settings = _replace_inputs(combine_settings, TextureChoosingMode.SPECIFIC_TEXTURES, files)

    texture_combiner(combine_settings)


def _replace_inputs(combine_settings: CombineSettings, mode: TextureChoosingMode, paths: List[str]) -> CombineSettings:
    if mode is TextureChoosingMode.FOLDERS:
        return replace(combine_settings, mode=mode, texture_folders=paths)
    return replace(combine_settings, mode=mode, textures_to_combine=paths)


if __name__ == "__main__":
    main()
