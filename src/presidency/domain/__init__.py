"""Pure rules layer of the presidency simulator.

This package holds everything with domain logic and nothing else:

* Dataclasses for the stat vector and derived results (see :mod:`models`).
* Enumerations and the error taxonomy.
* Rule tables (see :mod:`rules_config`).
* Pure rule functions: delta application, achievements, thresholds and
  archive glyph rendering.

Persistence, logging and HTTP concerns live outside this package.
"""

from . import achievements, archive, deltas, enums, errors, models, rules_config, thresholds

__all__ = [
    "achievements",
    "archive",
    "deltas",
    "enums",
    "errors",
    "models",
    "rules_config",
    "thresholds",
]
