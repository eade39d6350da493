from .models import MergeSpec, ModelConfig
from .loader import (
    ConfigIssue,
    config_for_source,
    find_config,
    load_config,
    parse_config_dict,
)

__all__ = [
    "MergeSpec",
    "ModelConfig",
    "ConfigIssue",
    "config_for_source",
    "find_config",
    "load_config",
    "parse_config_dict",
]
