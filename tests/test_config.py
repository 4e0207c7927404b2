import json

import pytest
from pydantic import ValidationError

from rcos_alpaca.config.loader import ConfigurationError, load_config, save_config
from rcos_alpaca.config.models import AppConfig, CommandConfig
from rcos_alpaca.config.profile import DeviceKind, DriverProfile, ProfileStore, default_profile_dir


def test_missing_config_is_created_with_defaults(tmp_path):
    path = tmp_path / "config.json"
    config = load_config(str(path))

    assert config == AppConfig()
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert "_comment" in saved
    assert saved["server"]["port"] == 11111
    assert saved["commands"]["focuser_move_relative"] == "m{sign}{steps} "


def test_config_round_trip(tmp_path):
    path = tmp_path / "config.json"
    config = AppConfig()
    config.serial.port = "COM5"
    config.client.query_settle_ms = 250
    save_config(config, str(path))

    loaded = load_config(str(path))
    assert loaded.serial.port == "COM5"
    assert loaded.client.query_settle_ms == 250


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid JSON"):
        load_config(str(path))


def test_validation_errors_name_the_field(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"server": {"port": 0}}), encoding="utf-8")
    with pytest.raises(ConfigurationError, match="server -> port"):
        load_config(str(path))


def test_unknown_sections_are_rejected(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"_comment": "ok", "telescope": {}}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_log_level_is_normalized():
    config = AppConfig(logging={"level": "debug"})
    assert config.logging.level == "DEBUG"


def test_command_templates_must_be_terminated():
    with pytest.raises(ValidationError):
        CommandConfig(focuser_stop="s")
    assert CommandConfig(focuser_move_absolute=None).focuser_move_absolute is None


@pytest.mark.parametrize("field,template", [
    ("focuser_move_absolute", "M{position} "),
    ("rotator_move_absolute", "R{sign}{steps} "),
    ("focuser_move_relative", "m{direction}{steps} "),
    ("rotator_move_relative", "r{0} "),
    ("focuser_move_relative", "m{sign "),
])
def test_move_templates_reject_unknown_placeholders(field, template):
    with pytest.raises(ValidationError):
        CommandConfig(**{field: template})


def test_move_template_errors_surface_at_load(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"commands": {"focuser_move_absolute": "M{position} "}}), encoding="utf-8")
    with pytest.raises(ConfigurationError, match="commands -> focuser_move_absolute"):
        load_config(str(path))


def test_custom_move_templates_are_accepted():
    config = CommandConfig(focuser_move_absolute="M{steps} ", rotator_move_relative="R{sign}{steps} ")
    assert config.focuser_move_absolute == "M{steps} "
    assert config.rotator_move_relative == "R{sign}{steps} "


def test_profile_created_on_first_load(tmp_path):
    store = ProfileStore(tmp_path)
    profile = store.load(DeviceKind.FOCUSER, "ASCOM.RCOS.Focuser")

    assert profile.com_port == "COM1"
    assert profile.focuser_max_step == 40000
    assert profile.focuser_step_size_microns == 0.5625
    assert profile.fan_auto_on_connect is False
    assert (tmp_path / "Focuser" / "profile.json").exists()


def test_profile_round_trip(tmp_path):
    store = ProfileStore(tmp_path)
    profile = DriverProfile(
        device_kind=DeviceKind.SWITCH,
        driver_id="ASCOM.RCOS.Switch",
        com_port="COM4",
        fan_auto_on_connect=True,
    )
    store.save(profile)

    loaded = store.load(DeviceKind.SWITCH, "ASCOM.RCOS.Switch")
    assert loaded.com_port == "COM4"
    assert loaded.fan_auto_on_connect is True


def test_corrupt_profile_falls_back_to_defaults(tmp_path):
    store = ProfileStore(tmp_path)
    path = store.path_for(DeviceKind.DEW)
    path.parent.mkdir(parents=True)
    path.write_text("{{{", encoding="utf-8")

    profile = store.load(DeviceKind.DEW, "ASCOM.RCOS.Dew")
    assert profile.com_port == "COM1"
    assert path.read_text(encoding="utf-8") == "{{{"


def test_invalid_profile_values_fall_back_to_defaults(tmp_path):
    store = ProfileStore(tmp_path)
    path = store.path_for(DeviceKind.FOCUSER)
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"focuser_max_step": -5}), encoding="utf-8")

    assert store.load(DeviceKind.FOCUSER, "ASCOM.RCOS.Focuser").focuser_max_step == 40000


def test_default_profile_dir_uses_appdata(monkeypatch, tmp_path):
    monkeypatch.setenv("APPDATA", str(tmp_path))
    assert default_profile_dir() == tmp_path / "RCOS" / "ASCOM"

    monkeypatch.delenv("APPDATA")
    assert default_profile_dir().parts[-3:] == (".config", "RCOS", "ASCOM")
