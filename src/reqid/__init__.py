"""reqid: content-addressable identifiers for HTTP requests.

A Generator reduces a request to the parts that matter (method, path and
the headers, query parameters and cookies its stages keep) and hashes that
canonical form. All public types are exported from this module:

    from reqid import GeneratorBuilder, default_generator_config
"""

import logging

__version__ = "0.1.0"

# Config
from reqid._config import (
    ComponentConfig,
    GeneratorConfig,
    default_generator_config,
    parse_generator_config,
)

# Errors
from reqid._errors import (
    ConfigParseError,
    InvalidConfigError,
    RequestIdError,
    UnknownStageError,
)

# Generator
from reqid._generator import Generator, GeneratorBuilder

# Named stages: see reqid._registry for lookup
from reqid._named import NamedStage, normalize_accept_encoding
from reqid._registry import contains, lookup, require, stage_names
from reqid._request import NormalizedRequest, hash_request

# Stages
from reqid._stages import (
    TRACKING_QUERY_PARAMS,
    Component,
    ComponentFilter,
    FilterMode,
    MethodRestrict,
    Named,
    PathExcept,
    PathRestrict,
    Stage,
    apply_stage,
    run_stages,
)
from reqid._types import EMPTY_REQUEST_ID, HashFactory, RawRequest, RequestID

# Wildcards
from reqid._wildcard import (
    WildCard,
    WildCardKind,
    WildCardSet,
    all_match,
    any_match,
    match,
    none_match,
)

__all__ = [
    # Protocols and values
    "RawRequest",
    "HashFactory",
    "RequestID",
    "EMPTY_REQUEST_ID",
    "NormalizedRequest",
    "hash_request",
    # Wildcards
    "WildCard",
    "WildCardKind",
    "WildCardSet",
    "match",
    "any_match",
    "all_match",
    "none_match",
    # Stages
    "Stage",
    "MethodRestrict",
    "PathRestrict",
    "PathExcept",
    "ComponentFilter",
    "Component",
    "FilterMode",
    "Named",
    "TRACKING_QUERY_PARAMS",
    "apply_stage",
    "run_stages",
    # Named stages
    "NamedStage",
    "normalize_accept_encoding",
    "lookup",
    "contains",
    "require",
    "stage_names",
    # Generator
    "Generator",
    "GeneratorBuilder",
    # Config
    "ComponentConfig",
    "GeneratorConfig",
    "default_generator_config",
    "parse_generator_config",
    # Errors
    "RequestIdError",
    "UnknownStageError",
    "InvalidConfigError",
    "ConfigParseError",
]

# Library logging goes through the stdlib "reqid" logger and is silent
# unless the host application configures a handler.
logging.getLogger(__name__).addHandler(logging.NullHandler())
