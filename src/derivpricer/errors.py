"""Exceptions raised by the pricing engines."""


class PricingError(RuntimeError):
    """Base class for faults raised while valuing a contract."""


class EngineNotSetError(PricingError):
    """A contract was queried before a pricing engine was bound to it."""


class UnsupportedOperationError(PricingError):
    """Exercise type, option type or scheme not handled by the engine."""
