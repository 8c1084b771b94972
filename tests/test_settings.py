import pytest

from zx_screen_loader.settings import Effects, ImageSource, SaverSettings, load_settings, save_settings


def test_defaults():
    settings = SaverSettings()
    assert settings.image_source is ImageSource.SCREENSHOT
    assert settings.input_path is None
    assert settings.effects == Effects()


def test_to_dict_uses_saved_key_names():
    settings = SaverSettings(image_source=ImageSource.ZXART, effects=Effects(scan_lines=True, crt_curvature=True))
    assert settings.to_dict() == {
        "imageSource": 1,
        "smooth": False,
        "scanline": True,
        "vignette": False,
        "analogNoise": False,
        "crtCurvature": True,
        "analogDrift": False,
        "glowLines": False,
    }


def test_dict_round_trip():
    settings = SaverSettings(
        image_source=ImageSource.FILE,
        input_path="/tmp/pic.scr",
        effects=Effects(smooth_image=True, glow_lines=True),
    )
    assert SaverSettings.from_dict(settings.to_dict()) == settings


@pytest.mark.parametrize("data", [None, {}])
def test_from_empty_data(data):
    assert SaverSettings.from_dict(data) == SaverSettings()


def test_from_dict_falls_back_on_bad_values():
    settings = SaverSettings.from_dict(
        {"imageSource": 9, "inputPath": 3, "smooth": "yes", "vignette": True, "scanline": 1}
    )
    assert settings.image_source is ImageSource.SCREENSHOT
    assert settings.input_path is None
    assert settings.effects == Effects(vignette=True)


def test_from_dict_accepts_string_source():
    assert SaverSettings.from_dict({"imageSource": "1"}).image_source is ImageSource.ZXART
    assert SaverSettings.from_dict({"imageSource": "zx"}).image_source is ImageSource.SCREENSHOT


def test_save_and_load(tmp_path):
    path = tmp_path / "conf" / "saver.json"
    settings = SaverSettings(image_source=ImageSource.ZXART, effects=Effects(analog_noise=True))
    save_settings(settings, path)
    assert load_settings(path) == settings


def test_load_missing_file_gives_defaults(tmp_path):
    assert load_settings(tmp_path / "missing.json") == SaverSettings()


def test_load_rejects_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)


def test_load_rejects_non_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)
