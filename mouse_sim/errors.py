"""Error taxonomy for the simulation core.

- DescriptionError: the robot description or configuration is malformed or
  geometrically degenerate. Raised while building a mouse; ``Mouse.initialize``
  turns it into a ``False`` return.
- CalibrationError: a DescriptionError found by the calibration math.
- InvariantError: a collaborator broke a runtime contract (unknown wheel,
  speed beyond max, ...). Never caught by the library.
"""

from __future__ import annotations


class DescriptionError(ValueError):
    pass


class CalibrationError(DescriptionError):
    pass


class InvariantError(RuntimeError):
    pass
