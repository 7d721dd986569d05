"""Core domain: configuration model, validation and plan resolution."""

from .config import ConfigError, Ecosystem, ShippoConfig, load_config, validate_config
from .errors import ErrorCode
from .plan import PackagePlan, Plan, PlanError, build_plan, naming_template
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "Ecosystem",
    "ShippoConfig",
    "load_config",
    "validate_config",
    # errors
    "ErrorCode",
    # plan
    "PackagePlan",
    "Plan",
    "PlanError",
    "build_plan",
    "naming_template",
    # result
    "Err",
    "Ok",
    "Result",
]
