"""
Tests for the Pillow import shim.
"""

from IS_Libs import pillow_compat


def test_version_parsing():
    assert pillow_compat._version_tuple("10.1.0") == (10, 1)
    assert pillow_compat._version_tuple("11.0.0.dev0") == (11, 0)
    assert pillow_compat._version_tuple("9") == (9,)


def test_installed_pillow_is_supported():
    assert pillow_compat._version_tuple(pillow_compat.PILLOW_VERSION) >= pillow_compat.MIN_PILLOW_VERSION
    assert hasattr(pillow_compat.Image, "Resampling")
