"""
Tests for configuration handling.
"""

import pytest

from minset.common import Config
from minset.errors import InvalidArgument


class TestConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        config = Config.load(str(tmp_path / "absent.toml"))

        assert config == Config()
        assert config.start_fraction == 1 / 128

    def test_load(self, tmp_path):
        path = tmp_path / "minset.toml"
        path.write_text(
            '[sampling]\nstart_fraction = 0.25\nseed = 7\n'
            '[reduce]\nalgorithm = "refine"\n'
            '[evaluate]\njobs = 4\n'
            '[logging]\nlevel = "debug"\nprogress = false\n'
        )
        config = Config.load(str(path))

        assert config.start_fraction == 0.25
        assert config.seed == 7
        assert config.algorithm == "refine"
        assert config.jobs == 4
        assert config.log_level == "debug"
        assert config.progress is False

    def test_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "other.toml"
        path.write_text('[evaluate]\njobs = 3\n')
        monkeypatch.setenv("MINSET_CONFIG", str(path))

        assert Config.load().jobs == 3

    @pytest.mark.parametrize("body", [
        '[sampling]\nstart_fraction = 0\n',
        '[sampling]\nseed = "x"\n',
        '[reduce]\nalgorithm = "exact"\n',
        '[evaluate]\njobs = 0\n',
        '[logging]\nlevel = "LOUD"\n',
        'not toml at all [',
        'sampling = 3\n',
        'logging = "debug"\n',
    ])
    def test_invalid(self, tmp_path, body):
        path = tmp_path / "minset.toml"
        path.write_text(body)
        with pytest.raises(InvalidArgument):
            Config.load(str(path))

    def test_set_and_dump(self, tmp_path):
        path = str(tmp_path / "minset.toml")
        config = Config().set("sampling.seed", "12").set("reduce.algorithm", "iterative")
        config.dump(path)
        loaded = Config.load(path)

        assert loaded.seed == 12
        assert loaded.algorithm == "iterative"
        assert loaded.get("sampling.seed") == 12

    def test_set_rejects_bad_values(self):
        with pytest.raises(InvalidArgument):
            Config().set("evaluate.jobs", "many")
        with pytest.raises(InvalidArgument):
            Config().set("sampling.start_fraction", "2")
        with pytest.raises(InvalidArgument):
            Config().set("logging.progress", "maybe")
        with pytest.raises(InvalidArgument):
            Config().get("nope.nope")

    def test_set_progress_spellings(self):
        assert Config().set("logging.progress", "off").progress is False
        assert Config(progress=False).set("logging.progress", "Yes").progress is True
