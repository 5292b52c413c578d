"""Core logic for linefocus.

This module provides the core functionality:
- Template resolution: date placeholders in patterns
- Composition: one matcher from many patterns
- Visibility: per-line hide decisions
- FilterState / FilterSession / FilterWorkspace: filter state per view
- Persistence: per-document records of active patterns
- ConfigLoader: Configuration file loading
"""

from linefocus.core.compose import (
    CompositionError,
    PatternValidationError,
    compose,
    validate_pattern,
)
from linefocus.core.config import (
    Config,
    ConfigError,
    ConfigLoader,
    FilterConfig,
    HistoryConfig,
    StorageConfig,
)
from linefocus.core.engine import FilterEngine, FilterResult, FilterSession, FilterWorkspace
from linefocus.core.history import PatternHistory
from linefocus.core.persistence import (
    FilterPersistence,
    JsonFilterPersistence,
    MemoryFilterPersistence,
    PersistenceError,
    PersistenceWriter,
)
from linefocus.core.saved import SavedPatternLibrary
from linefocus.core.state import FilterState
from linefocus.core.template import TemplateFormatWarning, TemplateVariable, resolve
from linefocus.core.visibility import VisibilityCalculator, VisibilityMap, compute_visibility

__all__ = [
    "CompositionError",
    "Config",
    "ConfigError",
    "ConfigLoader",
    "FilterConfig",
    "FilterEngine",
    "FilterPersistence",
    "FilterResult",
    "FilterSession",
    "FilterState",
    "FilterWorkspace",
    "HistoryConfig",
    "JsonFilterPersistence",
    "MemoryFilterPersistence",
    "PatternHistory",
    "PatternValidationError",
    "PersistenceError",
    "PersistenceWriter",
    "SavedPatternLibrary",
    "StorageConfig",
    "TemplateFormatWarning",
    "TemplateVariable",
    "VisibilityCalculator",
    "VisibilityMap",
    "compose",
    "compute_visibility",
    "resolve",
    "validate_pattern",
]
