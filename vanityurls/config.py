import logging
from os import getenv
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .display import DISPLAY_TOKENS, VCS_KINDS, infer_display, infer_vcs
from .routing import RuleSet, build_rule_set

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Invalid vanity configuration; the server must not start with it."""


class PathConfig(BaseModel):
    repo: str
    vcs: str | None = None
    display: str | None = None

    @model_validator(mode='after')
    def fill_defaults(self) -> 'PathConfig':
        if self.vcs is None:
            self.vcs = infer_vcs(self.repo)
            if self.vcs is None:
                raise ValueError(f'cannot infer VCS from {self.repo}')
        elif self.vcs not in VCS_KINDS:
            raise ValueError(f'unknown VCS {self.vcs}')

        if self.display is None:
            self.display = infer_display(self.repo)
        return self


class VanityConfig(BaseModel):
    host: str = ''
    cache_max_age: int = Field(default=86400, ge=0)
    paths: dict[str, PathConfig] = Field(default_factory=dict)
    pathrules: dict[str, PathConfig] = Field(default_factory=dict)

    @field_validator('host', mode='before')
    @classmethod
    def empty_host(cls, value):
        return value or ''

    @field_validator('paths', 'pathrules', mode='before')
    @classmethod
    def empty_mapping(cls, value):
        return value or {}

    @property
    def cache_control(self) -> str:
        return f'public, max-age={self.cache_max_age}'

    def build_rule_set(self) -> RuleSet:
        """
        Build the immutable rule set serving this configuration.

        :raises ConfigError: a path rule is malformed, uses a go-source token
            as its placeholder, or two paths collide.
        """
        try:
            rule_set = build_rule_set(self.paths.items(), self.pathrules.items())
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        for rule in rule_set.templated:
            if rule.placeholder in DISPLAY_TOKENS:
                raise ConfigError(
                    f'path rule {rule.pattern!r}: placeholder {rule.placeholder} '
                    f'is reserved for go-source display templates')
        return rule_set


def load_config(data: str | bytes) -> VanityConfig:
    """
    Parse a YAML vanity configuration.

    :raises ConfigError: the document is not valid YAML or fails validation.
    """
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigError(f'invalid YAML: {exc}') from exc

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigError('configuration must be a mapping')

    try:
        config = VanityConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    # Surface bad path rules at load time rather than at first request.
    config.build_rule_set()
    return config


def load_config_file(path: str | Path) -> VanityConfig:
    logger.info('Loading vanity configuration from %s', path)
    return load_config(Path(path).read_bytes())


class Settings(BaseModel):
    """Process settings, read from the environment."""
    config_path: str = 'vanity.yaml'
    redis_url: str | None = None
    rate_limit_capacity: int = Field(default=50, gt=0)
    rate_limit_rate: float = Field(default=1.0, gt=0)
    host: str = '0.0.0.0'
    port: int = 8080
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            config_path=getenv('VANITY_CONFIG', 'vanity.yaml'),
            redis_url=getenv('REDIS_URL') or None,
            rate_limit_capacity=getenv('RATE_LIMIT_CAPACITY', '50'),
            rate_limit_rate=getenv('RATE_LIMIT_RATE', '1.0'),
            host=getenv('HOST', '0.0.0.0'),
            port=getenv('PORT', '8080'),
            log_level=getenv('LOG_LEVEL', 'INFO'),
        )


settings = Settings.from_env()
