""" Asset backend: file-system stand-in for the project's asset database, so the main texture_combiner logic stays storage-agnostic. """
#  Textures are image files, materials are .mat.json documents and importing a texture writes its .import.json settings next to it.

import os
import json
from typing import Dict, List, Optional

from backend.image_lib import (ImageObject, close_image, get_size, open_image, save_image as save_image_file)
from backend.texture_classes import (CombineContext, ImportSettings, MaterialAsset, TextureAsset, TextureSetWithMaps)

from settings import (ALLOWED_FILE_TYPES, IMPORT_SETTINGS_EXTENSION, MATERIAL_EXTENSION, OUTPUT_FILE_TYPES, PACKED_SUFFIX, RAW_SOURCE_TYPES)
from utils import (asset_name, check_exr_libraries, load_exr_image, log, relative_path)




#                                         === Texture assets ===

def _has_extension(file_name: str, extensions) -> bool:
    return file_name.lower().endswith(tuple(f".{extension}" for extension in extensions))


def list_textures_in_folder(folder_path: str) -> List[str]:
# Lists texture files under folder_path, including subfolders, sorted by path.
# Skips packed textures created by previous runs, so they are never packed again.

    texture_paths: List[str] = []
    source_file_types = ALLOWED_FILE_TYPES + RAW_SOURCE_TYPES

    for root, subdirectories, filenames in os.walk(os.path.abspath(folder_path)):
        subdirectories.sort()
        for filename in filenames:
            if not _has_extension(filename, source_file_types):
                continue
            if asset_name(filename).lower().endswith(PACKED_SUFFIX.lower()):
                continue
            texture_paths.append(os.path.join(root, filename))

    texture_paths.sort(key=lambda path: path.replace("\\", "/"))
    return texture_paths


def load_texture_asset(texture_path: str) -> Optional[TextureAsset]:
# Loads texture metadata without keeping the image open. Returns None if the file is missing or unreadable.

    if not texture_path or not os.path.isfile(texture_path):
        log(f"Texture not found: {texture_path}", "error")
        return None

    absolute_path: str = os.path.abspath(texture_path)
    if _has_extension(absolute_path, RAW_SOURCE_TYPES) and not check_exr_libraries():
        log(f"Skipping '{absolute_path}': EXR runtime missing (OpenEXR/NumPy).", "warn")
        return None

    try:
        image = open_texture_image(absolute_path)
        resolution = get_size(image)
        close_image(image)
    except (OSError, ValueError) as error:
        log(f"Cannot open image file: {absolute_path} – {error}", "error")
        return None

    return TextureAsset(name=asset_name(absolute_path), path=absolute_path, resolution=resolution)


def open_texture_image(texture_path: str) -> ImageObject:
# Opens a source texture; .exr files are converted to 8bit in memory.
    if _has_extension(texture_path, RAW_SOURCE_TYPES):
        return load_exr_image(texture_path)
    return open_image(texture_path)


def packed_texture_path(output_folder: str, texture_set_name: str, file_type: str) -> str:
    return os.path.join(output_folder, f"{texture_set_name}{PACKED_SUFFIX}.{file_type}")


def write_import_settings(texture_path: str, import_settings: ImportSettings) -> str:
# Writes the import settings read by the engine when it picks up the texture.

    settings_path: str = f"{texture_path}{IMPORT_SETTINGS_EXTENSION}"
    with open(settings_path, "w", encoding="utf-8") as f:
        json.dump(import_settings, f, indent=2)
    return settings_path


def save_packed_texture(image: ImageObject, texture_set: TextureSetWithMaps, context: CombineContext) -> Optional[TextureAsset]:
# Saves the packed texture next to its source textures as "<set name>_packed.<ext>" and imports it as linear (non-sRGB) data.
# Returns the imported texture, or None if the file could not be written.

    output_folder: str = texture_set.output_folder or context.current_folder
    file_type: str = (context.settings.file_type or "png").strip().lower().lstrip(".")

    if not output_folder or not os.path.isdir(output_folder):
        log(f"Cannot resolve output folder for '{texture_set.texture_set_name}': {output_folder}", "error")
        return None
    if file_type not in OUTPUT_FILE_TYPES:
        log(f"Cannot save '{texture_set.texture_set_name}': unsupported file type '{file_type}'.", "error")
        return None

    output_path: str = packed_texture_path(output_folder, texture_set.texture_set_name, file_type)
    settings_path: str = f"{output_path}{IMPORT_SETTINGS_EXTENSION}"
    new_files: List[str] = [path for path in (output_path, settings_path) if not os.path.exists(path)]
    try:
        save_image_file(image, output_path, file_type)
        write_import_settings(output_path, ImportSettings(
            srgb_texture=False,
            source_textures=[os.path.basename(texture.path) for texture in texture_set.inputs if texture is not None],
        ))
    except (OSError, ValueError) as error:
        log(f"Failed to save packed texture '{output_path}': {error}", "error")
        _remove_files(new_files)
        return None
    log(f"Packed texture saved to: {output_path}", "info")

    return load_texture_asset(output_path)


def _remove_files(paths: List[str]) -> None:
# Removes files written by a failed save, so no half-imported texture is left behind.
    for path in paths:
        if os.path.isfile(path):
            try:
                os.remove(path)
            except OSError as error:
                log(f"Cannot remove '{path}': {error}", "warn")




#                                         === Material assets ===

def list_materials_in_folders(folder_paths: List[str]) -> List[str]:
# Lists .mat.json files under all given folders, including subfolders. Empty or missing folders are skipped.

    material_paths: List[str] = []
    for folder_path in folder_paths:
        if not folder_path or not os.path.isdir(folder_path):
            log(f"Material folder not found: {folder_path}", "warn")
            continue
        for root, subdirectories, filenames in os.walk(os.path.abspath(folder_path)):
            subdirectories.sort()
            for filename in sorted(filenames):
                if filename.lower().endswith(MATERIAL_EXTENSION):
                    material_path = os.path.join(root, filename)
                    if material_path not in material_paths:
                        material_paths.append(material_path)
    return material_paths


def load_material(material_path: str) -> Optional[MaterialAsset]:
# Reads a material document. Returns None if it cannot be read or parsed.

    try:
        with open(material_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, ValueError) as error:
        log(f"Cannot read material: {material_path} – {error}", "error")
        return None

    if not isinstance(document, dict) or not isinstance(document.get("textures") or {}, dict):
        log(f"Cannot read material: {material_path} – not a material document", "error")
        return None

    textures: Dict[str, str] = {
        property_name: texture_reference
        for property_name, texture_reference in (document.get("textures") or {}).items()
        if isinstance(texture_reference, str) and texture_reference
    }
    return MaterialAsset(
        name=document.get("name") or asset_name(material_path),
        path=os.path.abspath(material_path),
        shader=document.get("shader", ""),
        textures=textures,
        document=document,
    )


def save_material(material: MaterialAsset) -> bool:
# Writes the material back, keeping any keys this tool doesn't manage.

    document = dict(material.document)
    document["name"] = material.name
    document["shader"] = material.shader
    document["textures"] = {**(document.get("textures") or {}), **material.textures}
    try:
        with open(material.path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
            f.write("\n")
    except OSError as error:
        log(f"Failed to save material '{material.path}': {error}", "error")
        return False
    material.document = document
    return True


def material_texture_path(material: MaterialAsset, texture_path: str) -> str:
# Path of a texture as stored in the material: relative to the material folder.
    return relative_path(texture_path, os.path.dirname(material.path))
