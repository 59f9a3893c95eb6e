# config.py

import os

import yaml


class Config:
    """Global configuration for process runs and timeline bindings.

    Attributes
    ----------
    max_run_steps:
        Default cap on the number of ``step`` calls performed by
        :meth:`Process.run` before the run is marked as failed.
    default_duration:
        Timeline duration in seconds used when a lesson omits one.
    step_epsilon:
        Tolerance used by the timeline runtime when searching for the
        previous or next step keyframe.
    output_dir:
        Directory receiving JSON lines logs.
    logging_mode:
        Enabled log categories. ``"diagnostic"`` enables every category,
        otherwise only the listed categories are written. Empty by default so
        nothing touches the disk unless requested.
    log_files:
        Mapping of ``category`` -> {``label``: bool} used to silence single
        log labels inside an enabled category.
    """

    base_dir = os.path.abspath(os.path.dirname(__file__))
    config_file: str | None = None
    output_dir = os.path.join(base_dir, "output")

    @staticmethod
    def output_path(*parts: str) -> str:
        """Return absolute path under the current output directory."""
        return os.path.join(Config.output_dir, *parts)

    max_run_steps = 10000
    default_duration = 10.0
    step_epsilon = 1e-6

    DEFAULT_LOG_FILES = {
        "process": {
            "process_run": True,
        },
        "binding": {
            "process_bound": True,
        },
    }

    # Default runtime copy
    log_files = {k: dict(v) for k, v in DEFAULT_LOG_FILES.items()}

    logging_mode: list[str] = []

    @classmethod
    def is_category_enabled(cls, category: str) -> bool:
        """Return ``True`` if ``category`` should be written based on mode."""
        mode = set(getattr(cls, "logging_mode", []))
        return "diagnostic" in mode or category in mode

    @classmethod
    def is_log_enabled(cls, category: str, label: str | None = None) -> bool:
        """Return ``True`` if a log entry should be written."""

        cfg = cls.log_files.get(category, {})
        if label is not None and not cfg.get(label.removesuffix(".jsonl"), True):
            return False
        return cls.is_category_enabled(category)

    @classmethod
    def load_from_file(cls, path: str) -> None:
        """Load configuration values from a JSON or YAML file.

        Only keys that already exist as attributes on ``Config`` will be
        assigned. Nested dictionaries are merged when the existing attribute
        is also a ``dict``. A relative ``output_dir`` is resolved against the
        directory containing ``path``.

        Parameters
        ----------
        path:
            Path to the configuration file. ``.yml`` and ``.yaml`` files are
            parsed with :func:`yaml.safe_load`, anything else as JSON.
        """
        import json

        if not os.path.exists(path):
            raise FileNotFoundError(path)
        with open(path) as f:
            if path.endswith((".yml", ".yaml")):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping")
        cls.config_file = os.path.abspath(path)
        base_dir = os.path.dirname(cls.config_file)

        for key, value in data.items():
            if key.startswith("_") or not hasattr(cls, key):
                continue
            if key == "output_dir" and not os.path.isabs(value):
                value = os.path.abspath(os.path.join(base_dir, value))
            current = getattr(cls, key)
            if isinstance(current, dict) and isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    if isinstance(current.get(sub_key), dict) and isinstance(
                        sub_value, dict
                    ):
                        current[sub_key].update(sub_value)
                    else:
                        current[sub_key] = sub_value
            else:
                setattr(cls, key, value)

