"""
End-to-end tests for the folder and specific-texture pipelines.
"""
import os
from dataclasses import replace

import numpy as np
import pytest
from PIL import Image

from backend.texture_classes import TextureChoosingMode
import texture_combiner
from texture_combiner import (main, process_specific_texture_assets, process_textures_in_folders)

from conftest import read_json, write_gray, write_material, write_texture


@pytest.fixture
def wood_folder(tmp_path):
    maps = tmp_path / "maps"
    metal = np.arange(16, dtype=np.uint8).reshape(4, 4) * 3
    ao = np.arange(16, dtype=np.uint8).reshape(4, 4) * 5 + 100
    rough = np.arange(16, dtype=np.uint8).reshape(4, 4) * 7 + 20
    write_texture(maps / "Wood_metal.png", metal)
    write_texture(maps / "Wood_AO.png", ao)
    write_texture(maps / "Wood_rough.png", rough)
    write_gray(maps / "Wood_albedo.png", 128)
    return maps, metal, ao, rough


def test_wood_folder_end_to_end(wood_folder, material_folder, combine_settings):
    maps, metal, ao, rough = wood_folder
    wood_material = write_material(material_folder / "Wood.mat.json", {"_MainTex": "../maps/Wood_albedo.png"})
    stone_material = write_material(material_folder / "Stone.mat.json", {"_MainTex": "../maps/Stone_albedo.png"})

    context = process_textures_in_folders([str(maps)], combine_settings)

    packed_path = os.path.join(str(maps), "Wood_packed.png")
    assert context.packed_textures == [packed_path]
    with Image.open(packed_path) as image:
        packed = np.asarray(image.convert("RGBA"))
    np.testing.assert_array_equal(packed[..., 0], metal)
    np.testing.assert_array_equal(packed[..., 1], ao)
    np.testing.assert_array_equal(packed[..., 2], rough)
    assert (packed[..., 3] == 255).all()

    assert read_json(packed_path + ".import.json")["srgb_texture"] is False

    assert context.rebound_materials == [wood_material]
    document = read_json(wood_material)
    assert document["shader"] == "TechArt/PackedLit"
    assert document["textures"]["_MetOccRoughMap"] == "../maps/Wood_packed.png"
    assert read_json(stone_material)["shader"] == "Standard"


def test_rerun_does_not_pack_previous_output(wood_folder, combine_settings):
    maps = wood_folder[0]
    process_textures_in_folders([str(maps)], combine_settings)

    context = process_textures_in_folders([str(maps)], combine_settings)

    assert context.packed_textures == [os.path.join(str(maps), "Wood_packed.png")]
    assert not os.path.exists(os.path.join(str(maps), "Wood_packed_packed.png"))


def test_each_folder_is_packed_separately(tmp_path, combine_settings):
    write_gray(tmp_path / "a" / "Wood_metal.png", 10)
    write_gray(tmp_path / "b" / "Wood_rough.png", 20)

    context = process_textures_in_folders([str(tmp_path / "a"), "", str(tmp_path / "missing"), str(tmp_path / "b")], combine_settings)

    assert context.packed_textures == [str(tmp_path / "a" / "Wood_packed.png"), str(tmp_path / "b" / "Wood_packed.png")]
    with Image.open(str(tmp_path / "b" / "Wood_packed.png")) as image:
        packed = np.asarray(image)
    assert (packed[..., 0] == 0).all()
    assert (packed[..., 2] == 20).all()


def test_truncated_texture_does_not_stop_other_sets(tmp_path, combine_settings):
    maps = tmp_path / "maps"
    write_gray(maps / "Iron_metal.png", 40)
    noise = np.random.default_rng(3).integers(0, 256, size=(64, 64), dtype=np.uint8)
    wood_metal = write_texture(maps / "Wood_metal.png", noise)
    with open(wood_metal, "rb") as f:
        data = f.read()
    with open(wood_metal, "wb") as f:
        f.write(data[:len(data) // 2])

    context = process_textures_in_folders([str(maps)], combine_settings)

    assert context.packed_textures == [str(maps / "Iron_packed.png"), str(maps / "Wood_packed.png")]
    with Image.open(str(maps / "Wood_packed.png")) as image:
        packed = np.asarray(image)
    assert (packed[..., 0] == 0).all()
    assert (packed[..., 1] == 255).all()


def test_no_folders_aborts(combine_settings, capsys):
    context = process_textures_in_folders([], combine_settings)

    assert context.packed_textures == []
    assert "Please provide at least one folder path" in capsys.readouterr().out


def test_specific_textures(wood_folder, combine_settings):
    maps = wood_folder[0]
    paths = [str(maps / "Wood_metal.png"), None, "", str(maps / "Wood_missing_AO.png"), str(maps / "Wood_rough.png")]

    context = process_specific_texture_assets(paths, combine_settings)

    assert context.packed_textures == [os.path.join(str(maps), "Wood_packed.png")]
    with Image.open(context.packed_textures[0]) as image:
        packed = np.asarray(image)
    assert (packed[..., 1] == 255).all()


def test_no_textures_aborts(combine_settings, capsys):
    context = process_specific_texture_assets([], combine_settings)

    assert context.texture_sets == {}
    assert "Please provide textures" in capsys.readouterr().out


def test_texture_combiner_uses_configured_mode(wood_folder, combine_settings):
    maps = wood_folder[0]
    combine_settings = replace(combine_settings, mode=TextureChoosingMode.SPECIFIC_TEXTURES, textures_to_combine=[str(maps / "Wood_AO.png")])

    assert texture_combiner.texture_combiner(combine_settings) == [os.path.join(str(maps), "Wood_packed.png")]


def test_invalid_file_type_aborts(combine_settings):
    with pytest.raises(SystemExit):
        texture_combiner.texture_combiner(replace(combine_settings, file_type="jpg"))


class TestMain:

    def test_folder_arguments(self, wood_folder, combine_settings, monkeypatch):
        maps = wood_folder[0]
        monkeypatch.setattr(texture_combiner, "COMBINE_SETTINGS", combine_settings)

        main([str(maps)])

        assert os.path.isfile(os.path.join(str(maps), "Wood_packed.png"))

    def test_file_arguments(self, wood_folder, combine_settings, monkeypatch):
        maps = wood_folder[0]
        monkeypatch.setattr(texture_combiner, "COMBINE_SETTINGS", combine_settings)

        main([str(maps / "Wood_metal.png")])

        assert os.path.isfile(os.path.join(str(maps), "Wood_packed.png"))

    def test_mixed_arguments_abort(self, wood_folder, combine_settings, monkeypatch):
        maps = wood_folder[0]
        monkeypatch.setattr(texture_combiner, "COMBINE_SETTINGS", combine_settings)

        with pytest.raises(SystemExit):
            main([str(maps), str(maps / "Wood_metal.png")])
