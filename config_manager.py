"""Configuration management for the N-Queens annealing tools.

This module provides a thin, explicit wrapper around a JSON configuration file
to centralize annealing defaults, experiment settings, and parallelism.

File format (high-level)
------------------------
- annealing: temperature per queen, temperature floor, schedule, init method.
- experiment_settings: N values, run counts, iteration factor, output
  directory and base seed.
- parallel: number of worker processes.

The class is read-only and returns Python native types; it does not validate
semantics beyond presence of keys. Values are checked where they are consumed.
"""
import json
from pathlib import Path


class ConfigManager:
    """Load, query, and persist configuration.

    Parameters
    ----------
    config_path : str | os.PathLike, default "config.json"
        Path to the configuration file.
    """

    def __init__(self, config_path="config.json"):
        self.config_path = Path(config_path)
        self.config = self.load_config()

    def load_config(self):
        """Load and parse the JSON configuration file.

        Returns
        -------
        dict
            Root configuration object.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                f"Create it or use the default config.json template"
            )

        with open(self.config_path, 'r') as f:
            try:
                config = json.load(f)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Malformed configuration file {self.config_path}: {exc}") from exc
        if not isinstance(config, dict):
            raise ValueError(f"Configuration root in {self.config_path} must be a JSON object")
        return config

    def get_annealing_settings(self):
        """Return annealing defaults (temperature per queen, floor, schedule, init)."""
        return self.config.get("annealing", {})

    def get_experiment_settings(self):
        """Return experiment settings (sizes, runs, iteration factor, output dir, seed)."""
        return self.config.get("experiment_settings", {})

    def get_parallel_settings(self):
        """Return process-pool settings."""
        return self.config.get("parallel", {})
