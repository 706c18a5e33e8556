"""Simple YAML configuration loader for VoiceMacro."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}


DEFAULT_CONFIG: Dict[str, Any] = {
    "transcription": {
        "use_openai_api": False,
        "openai_api_key": "",
        "whisper_language": "ko",
        "openai": {
            "model": "whisper-1",
            "base_url": "https://api.openai.com/v1/audio/transcriptions",
            "timeout_seconds": 30.0,
        },
        "local": {
            "model_size": "base",
            "device": "cpu",
            "compute_type": "int8",
            "beam_size": 5,
            "download_root": None,
        },
    },
    "audio": {
        "sample_rate": 16000,
        "chunk_size": 1024,
        "channels": 1,
        "device_index": None,
    },
    "capture": {
        "auto_stop": True,
        "speech_threshold_db": -40.0,
        "silence_timeout_seconds": 1.5,
        "max_duration_seconds": 10.0,
        "no_speech_timeout_seconds": 0.0,
    },
    "logging": {
        "level": "INFO",
        "file_path": "logs/voicemacro.log",
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay ``override`` on top of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class VoiceMacroConfig:
    """VoiceMacro configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, only the built-in
                        defaults are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "VoiceMacroConfig":
        """Build a configuration from an in-memory mapping overlaid on the defaults."""
        config = cls()
        config.config = _merge(DEFAULT_CONFIG, values or {})
        return config

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(DEFAULT_CONFIG, loaded)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        log_path = config.get('logging', {}).get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

        download_root = config.get('transcription', {}).get('local', {}).get('download_root')
        if download_root and not os.path.isabs(download_root):
            config['transcription']['local']['download_root'] = str(config_dir / download_root)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'transcription.whisper_language').

        Args:
            key_path: Dot-separated key path (e.g., 'audio.sample_rate')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_bool(self, key_path: str, default: bool = False) -> bool:
        """Get a flag, reading quoted YAML values such as "false" or "off" as text."""
        value = self.get(key_path)
        if value is None:
            return default
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
            logger.warning(f"Unrecognized boolean {value!r} for {key_path}, using {default}")
            return default
        return bool(value)

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'transcription.use_openai_api')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        if 'api_key' in keys[-1]:
            logger.debug(f"Configuration key '{key_path}' set")
        else:
            logger.debug(f"Configuration key '{key_path}' set to: {value}")

    @property
    def use_openai_api(self) -> bool:
        """UseOpenAIApi: prefer the cloud backend when a key is available."""
        return self.get_bool('transcription.use_openai_api', False)

    @property
    def openai_api_key(self) -> str:
        """OpenAIApiKey, falling back to the OPENAI_API_KEY environment variable."""
        key = self.get('transcription.openai_api_key') or os.environ.get('OPENAI_API_KEY', '')
        return (key or '').strip()

    @property
    def whisper_language(self) -> str:
        """WhisperLanguage: language hint passed to either backend."""
        return (self.get('transcription.whisper_language') or '').strip()
