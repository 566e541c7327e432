"""
Configuration management for the Plugin Modernizer.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .exceptions import ConfigurationError
from .logging_config import get_logger

logger = get_logger('config')

DEFAULT_ORGANIZATION = "jenkinsci"
DEFAULT_LOW_SCORE_THRESHOLD = 80.0


@dataclass
class CacheConfig:
    """Configuration for the cache store."""
    cache_dir: str = os.path.join(os.path.expanduser("~"), ".cache", "plugin-modernizer")
    max_age_days: int = 0  # 0 disables expiry


@dataclass
class EndpointsConfig:
    """Remote metadata endpoints."""
    update_center_url: str = "https://updates.jenkins.io/current/update-center.actual.json"
    health_score_url: str = "https://plugin-health.jenkins.io/api/scores"
    installation_stats_url: str = (
        "https://raw.githubusercontent.com/jenkins-infra/infra-statistics/gh-pages/"
        "plugin-installation-trend/latestNumbers.csv"
    )
    maven_repository_url: str = "https://repo.jenkins-ci.org/public"
    bom_group_id: str = "io.jenkins.tools.bom"
    timeout: float = 30.0


@dataclass
class RecipeConfig:
    """Migration applied by a run, recorded on every run record."""
    name: str = "io.jenkins.tools.pluginmodernizer.UpgradeBomVersion"
    description: str = "Upgrade the bill of materials to the latest available version"
    tags: List[str] = field(default_factory=lambda: ['dependencies'])


@dataclass
class PipelineConfig:
    """Configuration for the component processing pipeline."""
    dry_run: bool = False
    fetch_metadata_only: bool = False
    max_workers: int = 1
    debug: bool = False
    organization: str = DEFAULT_ORGANIZATION
    low_score_threshold: float = DEFAULT_LOW_SCORE_THRESHOLD
    recipe: RecipeConfig = field(default_factory=RecipeConfig)


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    endpoints: EndpointsConfig = field(default_factory=EndpointsConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Environment variable -> (section, attribute)
ENVIRONMENT_OVERRIDES = {
    'CACHE_DIR': ('cache', 'cache_dir'),
    'JENKINS_UC': ('endpoints', 'update_center_url'),
    'JENKINS_PHS': ('endpoints', 'health_score_url'),
    'JENKINS_STATS_INSTALLATIONS': ('endpoints', 'installation_stats_url'),
    'MAVEN_REPOSITORY': ('endpoints', 'maven_repository_url'),
}


def load_config(config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Config:
    """
    Load configuration from file or use defaults.
    
    Args:
        config_path: Optional path to configuration file
        environ: Environment mapping, defaults to os.environ
        
    Returns:
        Config object with loaded settings
        
    Raises:
        ConfigurationError: If configuration file is invalid
    """
    config = Config()
    
    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error loading configuration file: {e}")
        
        if config_data:
            if not isinstance(config_data, dict):
                raise ConfigurationError("Configuration file must contain a mapping")
            _update_config_from_dict(config, config_data)
            logger.info(f"Loaded configuration from {config_path}")
    
    elif config_path:
        logger.warning(f"Configuration file not found: {config_path}")
    
    _apply_environment(config, os.environ if environ is None else environ)
    _validate_config(config)
    return config


def _update_config_from_dict(config: Config, config_data: Dict) -> None:
    """
    Update configuration object from dictionary data.
    
    Args:
        config: Config object to update
        config_data: Dictionary with configuration data
    """
    for section_name in ('cache', 'endpoints', 'pipeline', 'logging'):
        section_data = config_data.get(section_name)
        if not section_data:
            continue
        section = getattr(config, section_name)
        for key, value in section_data.items():
            if section_name == 'pipeline' and key == 'recipe':
                _update_section(config.pipeline.recipe, 'pipeline.recipe', value or {})
            elif hasattr(section, key):
                setattr(section, key, value)
            else:
                logger.warning(f"Ignoring unknown configuration key: {section_name}.{key}")


def _update_section(section, section_name: str, data: Dict) -> None:
    for key, value in data.items():
        if hasattr(section, key):
            setattr(section, key, value)
        else:
            logger.warning(f"Ignoring unknown configuration key: {section_name}.{key}")


def _apply_environment(config: Config, environ) -> None:
    for variable, (section_name, attribute) in ENVIRONMENT_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            logger.debug(f"Using {variable} for {section_name}.{attribute}")
            setattr(getattr(config, section_name), attribute, value)


def _validate_config(config: Config) -> None:
    try:
        config.pipeline.max_workers = int(config.pipeline.max_workers)
        config.cache.max_age_days = int(config.cache.max_age_days)
        config.endpoints.timeout = float(config.endpoints.timeout)
        config.pipeline.low_score_threshold = float(config.pipeline.low_score_threshold)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid numeric configuration value: {e}")
    
    if config.pipeline.max_workers < 1:
        raise ConfigurationError("pipeline.max_workers must be at least 1")
    if config.cache.max_age_days < 0:
        raise ConfigurationError("cache.max_age_days cannot be negative")
    if not config.cache.cache_dir:
        raise ConfigurationError("cache.cache_dir cannot be empty")


def get_default_config_path() -> Optional[str]:
    """
    Get the default configuration file path.
    
    Returns:
        Path to default config file if it exists, None otherwise
    """
    possible_paths = [
        'plugin_modernizer.yaml',
        'plugin_modernizer.yml',
        os.path.expanduser('~/.plugin_modernizer.yaml'),
        os.path.expanduser('~/.plugin_modernizer.yml'),
    ]
    
    for path in possible_paths:
        if os.path.exists(path):
            return path
    
    return None
