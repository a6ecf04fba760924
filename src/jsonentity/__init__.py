"""jsonentity: declarative whitelists that project records into new dicts.

Public API:
    Entity              : compile rules, then represent(data, options)
    Rule, Mode, ABSENT  : the canonical compiled form
    Always, Never,
    Computed, Options   : explicit rule-input variants
    ConfigurationError,
    MissingPropertyError: raised for bad declarations / missing required data
    configure()         : wire structured logging from YAML + env config
"""

from jsonentity.entity import Entity
from jsonentity.errors import ConfigurationError, EntityError, MissingPropertyError
from jsonentity.logging import configure, get_logger, setup_logging
from jsonentity.models import ABSENT, Always, Computed, Mode, Never, Options, Rule

__all__ = [
    "ABSENT",
    "Always",
    "Computed",
    "ConfigurationError",
    "Entity",
    "EntityError",
    "MissingPropertyError",
    "Mode",
    "Never",
    "Options",
    "Rule",
    "configure",
    "get_logger",
    "setup_logging",
]
