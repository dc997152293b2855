"""
Configuration loading for batch renders.

A configuration file is JSON or YAML holding a ``FractalConfigurations``
list, one record per image, plus an optional ``Render`` section:

    {
      "Render": {"OutputDir": "out", "ImageFormat": "bmp", "Processes": 1},
      "FractalConfigurations": [
        {"Seed": 1, "Width": 800, "Height": 800, "Fractal": 0,
         "JuliaReal": 0.0, "JuliaImag": 0.0, "MaxIterations": 0}
      ]
    }
"""

import json
from typing import Dict, Any, List, Optional, Union
from pathlib import Path
import logging

import yaml

from ..api import RenderConfig
from ..core.exceptions import FractalError
from ..core.fractal_types import FractalRequest, FractalVariant

logger = logging.getLogger(__name__)

CONFIGURATIONS_KEY = 'FractalConfigurations'
RENDER_KEY = 'Render'

RECORD_FIELDS = ('Seed', 'Width', 'Height', 'Fractal', 'JuliaReal', 'JuliaImag', 'MaxIterations')

# Render section key -> RenderConfig attribute
RENDER_FIELDS = {
    'outputdir': 'output_dir',
    'imageformat': 'image_format',
    'seeded': 'seeded',
    'processes': 'processes',
    'savemetadata': 'save_metadata',
}


class ConfigError(FractalError):
    """A configuration file cannot be read or has the wrong shape."""


class ConfigManager:
    """Loads, validates and writes batch configuration files."""

    def load_config(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a configuration file.

        Args:
            path: JSON (.json) or YAML (.yaml/.yml) file

        Returns:
            Parsed configuration dictionary

        Raises:
            ConfigError: The file does not parse or is not a mapping
            OSError: The file cannot be read
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()

        try:
            if path.suffix.lower() in ('.yaml', '.yml'):
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

        logger.info(f"Loaded configuration: {path}")
        return data

    def get_records(self, config_dict: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Return the ordered list of fractal records."""
        records = _get_key(config_dict, CONFIGURATIONS_KEY)
        if records is None:
            raise ConfigError(f"No '{CONFIGURATIONS_KEY}' section found")
        if not isinstance(records, list):
            raise ConfigError(f"'{CONFIGURATIONS_KEY}' must be a list")
        return records

    def load_requests(self, path: Union[str, Path]) -> List[FractalRequest]:
        """
        Build requests for every valid record of a configuration file.

        Invalid records are logged and left out; their position still
        consumes a request id so file names match record order.
        """
        requests = []
        for request_id, record in enumerate(self.get_records(self.load_config(path))):
            try:
                requests.append(FractalRequest.from_record(record, request_id=request_id))
            except FractalError as e:
                logger.warning(f"Skipping record {request_id}: {e}")
        return requests

    def create_render_config(self, config_dict: Optional[Dict[str, Any]] = None,
                             **overrides) -> RenderConfig:
        """
        Build a RenderConfig from the Render section and explicit overrides.

        Overrides whose value is None are ignored.
        """
        section = _get_key(config_dict or {}, RENDER_KEY) or {}
        values = {}
        for key, value in section.items():
            attr = RENDER_FIELDS.get(str(key).lower().replace('_', ''))
            if attr is None:
                logger.warning(f"Ignoring unknown render setting '{key}'")
                continue
            values[attr] = value

        values.update({k: v for k, v in overrides.items() if v is not None})

        config = RenderConfig(**values)
        config.validate()
        return config

    def validate_config(self, config_dict: Dict[str, Any]) -> List[str]:
        """
        Check a configuration dictionary.

        Returns:
            List of error messages; empty when the configuration is valid
        """
        errors = []

        try:
            records = self.get_records(config_dict)
        except ConfigError as e:
            return [str(e)]

        for i, record in enumerate(records):
            if not isinstance(record, dict):
                errors.append(f"Record {i}: must be a mapping")
                continue

            keys = {str(k).lower() for k in record}
            for name in ('Width', 'Height', 'Fractal'):
                if name.lower() not in keys:
                    errors.append(f"Record {i}: missing '{name}'")

            unknown = keys - {f.lower() for f in RECORD_FIELDS}
            for key in sorted(unknown):
                errors.append(f"Record {i}: unknown field '{key}'")

            try:
                FractalRequest.from_record(record, request_id=i)
            except FractalError as e:
                errors.append(f"Record {i}: {e}")

        try:
            self.create_render_config(config_dict)
        except (FractalError, TypeError) as e:
            errors.append(f"Render: {e}")

        return errors

    def export_config_template(self, path: Union[str, Path]) -> Path:
        """Write a sample configuration with one record per variant."""
        path = Path(path)
        records = []
        for variant in FractalVariant:
            records.append({
                'Seed': variant.value,
                'Width': 800,
                'Height': 800,
                'Fractal': variant.value,
                'JuliaReal': -0.7 if variant is FractalVariant.JULIA else 0.0,
                'JuliaImag': 0.27015 if variant is FractalVariant.JULIA else 0.0,
                'MaxIterations': 0,
            })

        template = {
            RENDER_KEY: {'OutputDir': '.', 'ImageFormat': 'bmp', 'Seeded': True, 'Processes': 1},
            CONFIGURATIONS_KEY: records,
        }

        with open(path, 'w', encoding='utf-8') as f:
            if path.suffix.lower() in ('.yaml', '.yml'):
                yaml.safe_dump(template, f, sort_keys=False)
            else:
                json.dump(template, f, indent=2)

        logger.info(f"Wrote configuration template: {path}")
        return path


def _get_key(mapping: Dict[str, Any], key: str) -> Any:
    """Case-insensitive dictionary lookup."""
    for k, v in mapping.items():
        if str(k).lower() == key.lower():
            return v
    return None
