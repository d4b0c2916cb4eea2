"""
Configuration management for the asset toolkit.
Supports TOML and JSON configuration files with validation.
"""

import os
import json
from dataclasses import dataclass, field

# Handle tomllib import for different Python versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11 with tomli package
from typing import Dict, List, Optional, Any, Union
from pathlib import Path


ENV_PREFIX = "IKEMEN_ASSETS_"

DEFAULT_RESERVED_DEFINITIONS = [
    "intro.def",
    "ending.def",
    "fight.def",
    "common1.cns",
    "select.def",
    "system.def",
]


@dataclass
class AssetConfig:
    """Main configuration class for the asset toolkit."""

    # Definition files
    definition_extension: str = ".def"
    motif_filename: str = "system.def"
    reserved_definitions: List[str] = field(default_factory=lambda: list(DEFAULT_RESERVED_DEFINITIONS))

    # Reference path prefixes
    stages_prefix: str = "stages"
    data_prefix: str = "data"

    # Portrait lookup
    portrait_group: int = 9000
    portrait_index: int = 1
    portrait_fallback_index: int = 0
    max_subfiles: int = 3000
    max_image_dimension: int = 2000

    # Downloads
    user_agent: str = "IKEMEN-Assets/0.1"
    download_timeout: Optional[float] = None
    chunk_size: int = 8192
    downloads_dir: str = "downloads"

    # Engine files
    engine_config_path: str = "save/config.json"

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "AssetConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            return cls._from_toml(config_path)
        elif config_path.suffix.lower() == '.json':
            return cls._from_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    @classmethod
    def _from_toml(cls, config_path: Path) -> "AssetConfig":
        """Load configuration from TOML file."""
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_json(cls, config_path: Path) -> "AssetConfig":
        """Load configuration from JSON file."""
        with open(config_path, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "AssetConfig":
        """Create configuration from dictionary."""
        config_data: Dict[str, Any] = {}

        # Handle definition settings
        if 'definitions' in data:
            definitions = data['definitions']
            config_data['definition_extension'] = definitions.get('extension', '.def')
            config_data['motif_filename'] = definitions.get('motif_filename', 'system.def')
            if 'reserved' in definitions:
                config_data['reserved_definitions'] = list(definitions['reserved'])

        # Handle reference path prefixes
        if 'paths' in data:
            paths = data['paths']
            config_data['stages_prefix'] = paths.get('stages_prefix', 'stages')
            config_data['data_prefix'] = paths.get('data_prefix', 'data')
            config_data['downloads_dir'] = paths.get('downloads_dir', 'downloads')
            config_data['engine_config_path'] = paths.get('engine_config', 'save/config.json')

        # Handle portrait settings
        if 'portrait' in data:
            portrait = data['portrait']
            config_data['portrait_group'] = portrait.get('group', 9000)
            config_data['portrait_index'] = portrait.get('index', 1)
            config_data['portrait_fallback_index'] = portrait.get('fallback_index', 0)
            config_data['max_subfiles'] = portrait.get('max_subfiles', 3000)
            config_data['max_image_dimension'] = portrait.get('max_image_dimension', 2000)

        # Handle download settings
        if 'download' in data:
            download = data['download']
            config_data['user_agent'] = download.get('user_agent', 'IKEMEN-Assets/0.1')
            config_data['download_timeout'] = download.get('timeout')
            config_data['chunk_size'] = download.get('chunk_size', 8192)

        return cls(**config_data)

    @classmethod
    def default(cls) -> "AssetConfig":
        """Create default configuration with environment variable overrides."""
        config = cls()
        return cls._apply_env_overrides(config)

    @classmethod
    def _apply_env_overrides(cls, config: "AssetConfig") -> "AssetConfig":
        """Apply environment variable overrides to configuration."""

        # Definition files
        if os.getenv('IKEMEN_ASSETS_DEFINITION_EXTENSION'):
            config.definition_extension = os.getenv('IKEMEN_ASSETS_DEFINITION_EXTENSION', '.def')

        if os.getenv('IKEMEN_ASSETS_RESERVED_DEFINITIONS'):
            config.reserved_definitions = [
                name.strip() for name in os.getenv('IKEMEN_ASSETS_RESERVED_DEFINITIONS', '').split(',') if name.strip()
            ]

        # Portrait lookup
        if os.getenv('IKEMEN_ASSETS_PORTRAIT_GROUP'):
            config.portrait_group = int(os.getenv('IKEMEN_ASSETS_PORTRAIT_GROUP', '9000'))

        if os.getenv('IKEMEN_ASSETS_MAX_SUBFILES'):
            config.max_subfiles = int(os.getenv('IKEMEN_ASSETS_MAX_SUBFILES', '3000'))

        if os.getenv('IKEMEN_ASSETS_MAX_IMAGE_DIMENSION'):
            config.max_image_dimension = int(os.getenv('IKEMEN_ASSETS_MAX_IMAGE_DIMENSION', '2000'))

        # Downloads
        if os.getenv('IKEMEN_ASSETS_USER_AGENT'):
            config.user_agent = os.getenv('IKEMEN_ASSETS_USER_AGENT', 'IKEMEN-Assets/0.1')

        if os.getenv('IKEMEN_ASSETS_DOWNLOAD_TIMEOUT'):
            config.download_timeout = float(os.getenv('IKEMEN_ASSETS_DOWNLOAD_TIMEOUT', '0')) or None

        if os.getenv('IKEMEN_ASSETS_DOWNLOADS_DIR'):
            config.downloads_dir = os.getenv('IKEMEN_ASSETS_DOWNLOADS_DIR', 'downloads')

        # Engine files
        if os.getenv('IKEMEN_ASSETS_ENGINE_CONFIG'):
            config.engine_config_path = os.getenv('IKEMEN_ASSETS_ENGINE_CONFIG', 'save/config.json')

        return config

    def is_definition(self, filename: str) -> bool:
        """Check whether a file name carries the definition extension."""
        return filename.lower().endswith(self.definition_extension.lower())

    def is_reserved(self, filename: str) -> bool:
        """Check whether a file name is an engine-reserved definition."""
        return filename.lower() in {name.lower() for name in self.reserved_definitions}

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.definition_extension.startswith('.'):
            errors.append("definition_extension must start with '.'")

        if not self.motif_filename:
            errors.append("motif_filename must not be empty")

        # Validate portrait selectors
        for name in ('portrait_group', 'portrait_index', 'portrait_fallback_index'):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                errors.append(f"{name} must be between 0 and 65535")

        if self.max_subfiles <= 0:
            errors.append("max_subfiles must be positive")

        if self.max_image_dimension <= 0:
            errors.append("max_image_dimension must be positive")

        # Validate download settings
        if self.download_timeout is not None and self.download_timeout <= 0:
            errors.append("download_timeout must be positive when set")

        if self.chunk_size <= 0:
            errors.append("chunk_size must be positive")

        return errors
