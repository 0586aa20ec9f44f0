import logging

import pytest

from parity.config import (
    GlobalConfig,
    InvalidSettingError,
    get_bootstrap_cache_dir,
    get_config,
    get_config_path,
    get_default_output_dir,
    get_parity_home,
    set_config,
)


def test_paths_follow_parity_home(isolate_parity_home):
    assert get_parity_home() == isolate_parity_home
    assert get_config_path() == isolate_parity_home / "config.toml"
    assert get_bootstrap_cache_dir() == isolate_parity_home / "bootstrap"


def test_missing_file_gives_defaults():
    config = GlobalConfig.load()

    assert config.campaign.minutes == 1.0
    assert config.campaign.output_dir == str(get_default_output_dir()) == "failures"
    assert config.candidate.sentinel == "Program End"
    assert config.candidate.sandbox_command == ["node", "{driver}"]
    assert config.minimizer.max_passes == 50
    assert config.minimizer.policy == "kind"
    assert config.reference.entry_point == "Program.main"
    assert config.reference.timeout == 30.0


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "config.toml"
    config = GlobalConfig()
    config.verbose = True
    config.campaign.minutes = 2.5
    config.campaign.master_seed = 77
    config.generator.command = ["gen", "--seed", "{seed}"]
    config.minimizer.policy = "output"

    assert config.save(path)
    loaded = GlobalConfig.load(path)

    assert loaded == config


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[candidate]\nsentinel = "DONE"\n\n[generator]\nkind = "corpus"\ncorpus_dir = "programs"\n')

    config = GlobalConfig.load(path)

    assert config.candidate.sentinel == "DONE"
    assert config.candidate.timeout == 30.0
    assert config.generator.kind == "corpus"
    assert config.generator.corpus_dir == "programs"
    assert config.campaign.max_iterations is None


@pytest.mark.parametrize("text", [
    "[campaign]\nminutes = 0\n",
    "[campaign]\nmax_iterations = 0\n",
    "[minimizer]\nmax_passes = 0\n",
    '[minimizer]\npolicy = "lines"\n',
    "[candidate]\ntimeout = -1\n",
    '[candidate]\nsentinel = "  "\n',
    "[candidate]\ntranslator_command = []\n",
    '[generator]\nkind = "grammar"\n',
    '[reference]\nentry_point = "a.b.c"\n',
    "[reference]\ntimeout = 0\n",
    'campaign = "fast"\n',
    '[campaign]\nminutes = "5"\n',
    '[campaign]\nminimize = "no"\n',
    "[campaign]\nmax_iterations = 2.5\n",
    "[minimizer]\nmax_passes = true\n",
    '[candidate]\ntranslator_command = "transcrypt {source}"\n',
    "[minimizer]\nstatement_denylist = [1, 2]\n",
    "[reference]\nentry_point = 3\n",
    '[parity]\nverbose = "yes"\n',
])
def test_invalid_values_raise(tmp_path, text):
    path = tmp_path / "config.toml"
    path.write_text(text)
    with pytest.raises(InvalidSettingError):
        GlobalConfig.load(path)


def test_integers_widen_to_float_settings(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[campaign]\nminutes = 5\nmaster_seed = 9\n\n[reference]\ntimeout = 2\n")

    config = GlobalConfig.load(path)

    assert config.campaign.minutes == 5.0
    assert isinstance(config.campaign.minutes, float)
    assert config.campaign.master_seed == 9
    assert config.reference.timeout == 2.0


def test_wrong_type_names_the_setting(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[campaign]\nminutes = "5"\n')

    with pytest.raises(InvalidSettingError, match=r"campaign\.minutes"):
        GlobalConfig.load(path)


def test_unknown_keys_are_ignored_with_warning(tmp_path, caplog):
    path = tmp_path / "config.toml"
    path.write_text("[campaign]\nminutes = 3\nturbo = true\n")

    with caplog.at_level(logging.WARNING, logger="parity.config.settings"):
        config = GlobalConfig.load(path)

    assert config.campaign.minutes == 3
    assert "turbo" in caplog.text


def test_malformed_file_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "config.toml"
    path.write_text("[campaign\nminutes = ")

    with caplog.at_level(logging.WARNING, logger="parity.config.settings"):
        config = GlobalConfig.load(path)

    assert config == GlobalConfig()
    assert "Could not load config" in caplog.text


def test_global_config_is_cached_until_reset():
    first = get_config()
    assert get_config() is first

    replacement = GlobalConfig(verbose=True)
    set_config(replacement)
    assert get_config() is replacement

    set_config(None)
    assert get_config() is not replacement


def test_to_dict_omits_unset_values():
    data = GlobalConfig().to_dict()

    assert data["parity"] == {"verbose": False}
    assert "master_seed" not in data["campaign"]
    assert "version_command" not in data["candidate"]
    assert data["minimizer"]["statement_denylist"] == ["Return", "Break", "Continue", "Pass"]
