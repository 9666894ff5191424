import logging
import os
from dataclasses import dataclass, asdict

import toml

from .errors import InvalidArgument
from .reduce import ALGORITHMS

DEFAULT_CONFIG_PATH = "minset.toml"
CONFIG_ENV = "MINSET_CONFIG"

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

CONFIG_KEYS = {
    "sampling.start_fraction": "Smallest fraction sampled by `evaluate` (default: 1/128).",
    "sampling.seed": "Seed for sampling and shuffling (default: unset, nondeterministic).",
    "reduce.algorithm": "Algorithm used by `reduce`: greedy, iterative or refine (default: greedy).",
    "evaluate.jobs": "Number of processes running sample reductions in parallel (default: 1).",
    "logging.level": "Log level (default: INFO).",
    "logging.progress": "Show progress bars (default: true).",
}


@dataclass
class Config:
    start_fraction: float = 1 / 128
    seed: int | None = None
    algorithm: str = "greedy"
    jobs: int = 1
    log_level: str = "INFO"
    progress: bool = True

    @classmethod
    def from_dict(cls, raw: dict) -> "Config":
        for section in ("sampling", "reduce", "evaluate", "logging"):
            if not isinstance(raw.get(section, {}), dict):
                raise InvalidArgument(f"[{section}] must be a table, got {raw[section]!r}")
        sampling = raw.get("sampling", {})
        reduce = raw.get("reduce", {})
        evaluate = raw.get("evaluate", {})
        logging_ = raw.get("logging", {})
        config = cls(
            start_fraction=sampling.get("start_fraction", cls.start_fraction),
            seed=sampling.get("seed", cls.seed),
            algorithm=reduce.get("algorithm", cls.algorithm),
            jobs=evaluate.get("jobs", cls.jobs),
            log_level=logging_.get("level", cls.log_level),
            progress=logging_.get("progress", cls.progress),
        )
        config.validate()
        return config

    @classmethod
    def load(cls, path: str | None = None) -> "Config":
        path = path or os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH)
        if not os.path.exists(path):
            return cls()
        try:
            raw = toml.load(path)
        except toml.TomlDecodeError as e:
            raise InvalidArgument(f"cannot parse config file {path}: {e}") from e
        return cls.from_dict(raw)

    def validate(self):
        if isinstance(self.start_fraction, bool) or not isinstance(self.start_fraction, (int, float)) \
                or not 0 < self.start_fraction <= 1:
            raise InvalidArgument(f"sampling.start_fraction must be in (0, 1], got {self.start_fraction!r}")
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise InvalidArgument(f"sampling.seed must be an integer, got {self.seed!r}")
        if self.algorithm not in ALGORITHMS:
            raise InvalidArgument(f"reduce.algorithm must be one of {', '.join(ALGORITHMS)}, got {self.algorithm!r}")
        if isinstance(self.jobs, bool) or not isinstance(self.jobs, int) or self.jobs < 1:
            raise InvalidArgument(f"evaluate.jobs must be a positive integer, got {self.jobs!r}")
        if not isinstance(self.log_level, str) or not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidArgument(f"logging.level is not a log level: {self.log_level!r}")
        if not isinstance(self.progress, bool):
            raise InvalidArgument(f"logging.progress must be true or false, got {self.progress!r}")

    def to_dict(self) -> dict:
        raw = {
            "sampling": {"start_fraction": self.start_fraction},
            "reduce": {"algorithm": self.algorithm},
            "evaluate": {"jobs": self.jobs},
            "logging": {"level": self.log_level, "progress": self.progress},
        }
        if self.seed is not None:
            raw["sampling"]["seed"] = self.seed
        return raw

    def get(self, key: str):
        section, _, name = key.partition(".")
        if key not in CONFIG_KEYS:
            raise InvalidArgument(f"unknown configuration option: {key}")
        return self.to_dict().get(section, {}).get(name)

    def set(self, key: str, value: str) -> "Config":
        """Return a copy with `key` set from its command-line string form."""
        if key not in CONFIG_KEYS:
            raise InvalidArgument(f"unknown configuration option: {key}")
        fields = asdict(self)
        try:
            match key:
                case "sampling.start_fraction":
                    fields["start_fraction"] = float(value)
                case "sampling.seed":
                    fields["seed"] = None if value.lower() in ("", "none") else int(value)
                case "reduce.algorithm":
                    fields["algorithm"] = value
                case "evaluate.jobs":
                    fields["jobs"] = int(value)
                case "logging.level":
                    fields["log_level"] = value.upper()
                case "logging.progress":
                    flag = value.lower()
                    if flag in TRUE_VALUES:
                        fields["progress"] = True
                    elif flag in FALSE_VALUES:
                        fields["progress"] = False
                    else:
                        raise ValueError(value)
        except ValueError as e:
            raise InvalidArgument(f"invalid value for {key}: {value!r}") from e
        config = Config(**fields)
        config.validate()
        return config

    def dump(self, path: str):
        with open(path, 'w') as f:
            toml.dump(self.to_dict(), f)


def setup_logging(level: str = "INFO", verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.getLevelName(level.upper()),
        format=LOG_FORMAT,
    )
