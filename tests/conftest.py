"""
Shared fixtures: textures are generated on the fly in pytest's tmp_path.
"""
import json
import os

import numpy as np
import pytest
from PIL import Image

from backend.texture_classes import CombineSettings, TextureAsset


def write_texture(path, values, mode=None):
    """Write a uint8 array as an image file and return its path as a string."""
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    Image.fromarray(np.asarray(values, dtype=np.uint8)).save(str(path))
    return str(path)


def write_gray(path, value, size=(4, 4)):
    """Write a uniform grayscale texture."""
    width, height = size
    return write_texture(path, np.full((height, width), value, dtype=np.uint8))


def write_material(path, textures, shader="Standard", **extra):
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    document = {"name": os.path.basename(str(path)).split(".")[0], "shader": shader, "textures": textures, **extra}
    with open(str(path), "w", encoding="utf-8") as f:
        json.dump(document, f)
    return str(path)


def read_json(path):
    with open(str(path), "r", encoding="utf-8") as f:
        return json.load(f)


def texture_asset(path):
    with Image.open(str(path)) as image:
        size = image.size
    name = os.path.splitext(os.path.basename(str(path)))[0]
    return TextureAsset(name=name, path=os.path.abspath(str(path)), resolution=size)


@pytest.fixture
def material_folder(tmp_path):
    folder = tmp_path / "materials"
    folder.mkdir()
    return folder


@pytest.fixture
def combine_settings(tmp_path, material_folder):
    return CombineSettings(
        texture_folders=[str(tmp_path / "maps")],
        material_folders=[str(material_folder)],
        shader_for_packed_textures="TechArt/PackedLit",
    )
