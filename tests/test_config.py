import pytest
from PIL import Image

from icopack.config import DEFAULT_RESOLUTIONS, ResolutionSpec, Settings, load_settings


def test_default_resolutions():
    spec = ResolutionSpec()
    assert tuple(spec) == (256, 72, 48, 32, 16)
    assert spec.primary == 256
    assert spec.secondary == 16
    assert spec.count == len(spec) == 5
    assert spec[2] == 48
    assert spec.sizes == DEFAULT_RESOLUTIONS


def test_parse_comma_list():
    spec = ResolutionSpec.parse(" 64, 32 ,16 ")
    assert spec.sizes == (64, 32, 16)


@pytest.mark.parametrize(
    "sizes",
    [(), (0, 16), (257, 16), (32, 32), (32.0, 16), (True, 16), (16, 256), (48, 72, 16)],
)
def test_invalid_resolutions_rejected(sizes):
    with pytest.raises(ValueError):
        ResolutionSpec(sizes)


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        ResolutionSpec.parse("256,big,16")


def test_settings_normalizes_filter_name():
    settings = Settings(resample_filter="bicubic")
    assert settings.resample_filter == "BICUBIC"
    assert settings.pil_filter == Image.Resampling.BICUBIC


def test_settings_unknown_filter():
    with pytest.raises(ValueError):
        Settings(resample_filter="mitchell")


def test_load_settings_defaults_from_empty_env():
    settings = load_settings({})
    assert settings.resolutions == ResolutionSpec()
    assert settings.resample_filter == "LANCZOS"
    assert settings.alpha_uses_colorspace is True


def test_load_settings_reads_variables():
    settings = load_settings(
        {
            "ICOPACK_RESOLUTIONS": "128,32",
            "ICOPACK_RESAMPLE_FILTER": "box",
            "ICOPACK_ALPHA_USES_COLORSPACE": "no",
        }
    )
    assert settings.resolutions.sizes == (128, 32)
    assert settings.pil_filter == Image.Resampling.BOX
    assert settings.alpha_uses_colorspace is False


def test_load_settings_names_bad_variable():
    with pytest.raises(ValueError, match="ICOPACK_RESOLUTIONS"):
        load_settings({"ICOPACK_RESOLUTIONS": "300"})
    with pytest.raises(ValueError, match="ICOPACK_ALPHA_USES_COLORSPACE"):
        load_settings({"ICOPACK_ALPHA_USES_COLORSPACE": "maybe"})
