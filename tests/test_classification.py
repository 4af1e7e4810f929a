"""
Tests for texture set names and map type detection.
"""
import pytest

from backend.texture_classes import CombineSettings, TextureMapType
from texture_combiner import (check_if_texture_name_contains_phrase, get_texture_map_type_by_suffix,
                              try_getting_texture_set_name)


class TestTextureSetName:

    @pytest.mark.parametrize("texture_name, expected", [
        ("Rock_albedo", "Rock"),
        ("Rock_metal", "Rock"),
        ("Old_Rock_AO", "Old_Rock"),
        ("_metal", "_metal"),
        ("Rock", "Rock"),
    ])
    def test_strips_last_suffix(self, texture_name, expected):
        assert try_getting_texture_set_name(texture_name) == expected

    def test_custom_separator(self):
        assert try_getting_texture_set_name("Rock-metal", separator="-") == "Rock"


class TestMapType:

    @pytest.mark.parametrize("texture_name, expected", [
        ("Wood_metal", TextureMapType.METALLIC),
        ("Wood_METAL", TextureMapType.METALLIC),
        ("Wood_AO", TextureMapType.OCCLUSION),
        ("wood_ao", TextureMapType.OCCLUSION),
        ("Wood_AmbientOcclusion", TextureMapType.OCCLUSION),
        ("Wood_rough", TextureMapType.ROUGHNESS),
        ("Wood_Roughness", TextureMapType.ROUGHNESS),
        ("Wood_albedo", TextureMapType.NONE),
        ("Wood_normal", TextureMapType.NONE),
    ])
    def test_default_suffixes(self, texture_name, expected):
        assert get_texture_map_type_by_suffix(texture_name, CombineSettings()) is expected

    def test_metallic_has_priority(self):
        # Matches both metallic and roughness suffixes.
        assert get_texture_map_type_by_suffix("Wood_metal_rough", CombineSettings()) is TextureMapType.METALLIC

    def test_occlusion_before_roughness(self):
        assert get_texture_map_type_by_suffix("Wood_rough_AO", CombineSettings()) is TextureMapType.OCCLUSION

    def test_configured_suffixes(self):
        combine_settings = CombineSettings(
            metallic_suffixes=["_M"],
            occlusion_suffixes=["_Occ"],
            roughness_suffixes=["_R", "_Rgh"],
        )
        assert get_texture_map_type_by_suffix("Crate_M", combine_settings) is TextureMapType.METALLIC
        assert get_texture_map_type_by_suffix("Crate_occ", combine_settings) is TextureMapType.OCCLUSION
        assert get_texture_map_type_by_suffix("Crate_rgh", combine_settings) is TextureMapType.ROUGHNESS
        assert get_texture_map_type_by_suffix("Crate_metal", combine_settings) is TextureMapType.METALLIC
        assert get_texture_map_type_by_suffix("Crate_AO", combine_settings) is TextureMapType.NONE

    def test_empty_name_is_none(self):
        assert get_texture_map_type_by_suffix("", CombineSettings()) is TextureMapType.NONE


def test_empty_phrase_never_matches():
    assert not check_if_texture_name_contains_phrase("Wood_albedo", ["", "_metal"])
    assert check_if_texture_name_contains_phrase("Wood_Metal", ["", "_metal"])
