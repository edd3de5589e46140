"""
Base configuration classes for the SolarSense engine.
Provides hierarchical, validatable configuration with YAML/JSON persistence.

Files are validated as they are loaded and merged, so an engine is never
built from a configuration that its validation level would reject.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Mapping, Optional, Union, List
from pathlib import Path
import yaml
import json
from enum import Enum
import logging

from ..exceptions import ConfigurationError


class ConfigFormat(Enum):
    """Supported configuration file formats."""
    YAML = "yaml"
    JSON = "json"

    @classmethod
    def from_path(cls, file_path: Path) -> "ConfigFormat":
        """Infer the format from a file suffix."""
        suffix = file_path.suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls.YAML
        if suffix == ".json":
            return cls.JSON
        raise ValueError(f"Unsupported file format: {file_path.suffix}")


class ValidationLevel(Enum):
    """Configuration validation levels."""
    STRICT = "strict"      # Fail on any validation error
    WARN = "warn"          # Log warnings but continue
    PERMISSIVE = "permissive"  # Ignore validation errors


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add a validation error."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a validation warning."""
        self.warnings.append(message)

    def extend(self, other: "ConfigValidationResult", prefix: str = "") -> None:
        """Fold another result into this one."""
        for error in other.errors:
            self.add_error(f"{prefix}{error}")
        for warning in other.warnings:
            self.add_warning(f"{prefix}{warning}")


class BaseConfig(ABC):
    """Abstract base class for all configuration objects."""

    def __init__(self, validation_level: ValidationLevel = ValidationLevel.STRICT):
        self.validation_level = validation_level
        self._logger = logging.getLogger(f"solarsense.config.{self.__class__.__name__}")

    @abstractmethod
    def validate(self) -> ConfigValidationResult:
        """Validate the configuration."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        pass

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseConfig':
        """Create configuration from dictionary."""
        pass

    def check(self) -> ConfigValidationResult:
        """Validate and act according to the validation level."""
        result = self.validate()

        if not result.is_valid:
            if self.validation_level == ValidationLevel.STRICT:
                raise ConfigurationError(
                    "Invalid configuration: " + "; ".join(result.errors)
                )
            if self.validation_level == ValidationLevel.WARN:
                for error in result.errors:
                    self._logger.warning(error)

        for warning in result.warnings:
            self._logger.warning(warning)

        return result

    def save_to_file(self, file_path: Union[str, Path], format: Optional[ConfigFormat] = None) -> None:
        """Save configuration to file, inferring the format from the suffix by default."""
        file_path = Path(file_path)
        format = format or ConfigFormat.from_path(file_path)

        with open(file_path, 'w') as f:
            if format == ConfigFormat.YAML:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

        self._logger.debug(f"Saved configuration to {file_path}")

    @classmethod
    def load_from_file(
        cls,
        file_path: Union[str, Path],
        validation_level: ValidationLevel = ValidationLevel.STRICT
    ) -> 'BaseConfig':
        """
        Load and check a configuration file.

        Sections and keys missing from the file keep their defaults.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the suffix is not a supported format
            ConfigurationError: If the document is not a mapping, or if it
                fails validation at the STRICT level
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        format = ConfigFormat.from_path(file_path)
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f) if format == ConfigFormat.YAML else json.load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {file_path} must contain a mapping, got {type(data).__name__}"
            )

        config = cls.from_dict(data)
        config.validation_level = validation_level
        config.check()
        return config

    def merge(self, other: Union['BaseConfig', Mapping[str, Any]]) -> 'BaseConfig':
        """
        Apply other on top of this configuration and check the result.

        other may be a full configuration or a partial mapping such as
        {"market": {"peak_rate": 9.0}}, which only overrides the keys it names.
        """
        overrides = other.to_dict() if isinstance(other, BaseConfig) else dict(other)
        merged = self.__class__.from_dict(self._deep_merge(self.to_dict(), overrides))
        merged.validation_level = self.validation_level
        merged.check()
        return merged

    @staticmethod
    def _deep_merge(dict1: Dict[str, Any], dict2: Mapping[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = dict1.copy()

        for key, value in dict2.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
                result[key] = BaseConfig._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
