class InvalidParameterError(ValueError):
    """Raised when a pricing input is invalid.

    Covers non-positive spot/strike/maturity, negative volatility, fewer than
    one lattice step, missing required arguments, mismatched array lengths and
    lattice probabilities falling outside ``[0, 1]``.

    Notes
    -----
    Inputs are never silently corrected; the caller gets the error.
    """


class NumericalFailureError(RuntimeError):
    """Raised when a well-formed computation cannot be completed.

    Typical causes are an empty delivery basket or a root finder that cannot
    bracket a sign change between two competing bonds. The latter may be a
    genuine CTD switching edge case; retrying with another grid density is the
    caller's decision.
    """


class UnsupportedTypeError(TypeError):
    """Raised when a dispatching entry point receives an instrument it cannot price."""
