"""
Exception taxonomy for the bhumi engine.

Each error class also derives from the closest builtin so callers that only
know the builtin (ValueError, IndexError, ...) still catch it.
"""


class BhumiError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(BhumiError, ValueError):
    """Invalid engine or camera parameters. Fatal at construction."""


class PresentError(BhumiError, RuntimeError):
    """A backend could not display a frame (window closed, terminal gone...)."""


class PhysicsDivergence(BhumiError, ArithmeticError):
    """Non-finite values entered the rigid body state.

    Raised by the divergence check and handled inside World.step(); never
    propagated to rendering.
    """


class BufferBoundsError(BhumiError, IndexError):
    """Indexed pixel access outside the buffer. Programmer error."""


class FrozenBufferError(BhumiError, RuntimeError):
    """Write attempted on a buffer that has been handed to a backend."""
