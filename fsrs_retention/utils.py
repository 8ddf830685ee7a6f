from collections.abc import Sequence

from .exceptions import InvalidParameters

N_PARAMETERS = 17

DEFAULT_PARAMETERS: tuple[float, ...] = (
    0.5701,
    1.4436,
    4.1386,
    10.9355,
    5.1443,
    1.2006,
    0.8627,
    0.0362,
    1.629,
    0.1342,
    1.0166,
    2.1174,
    0.0839,
    0.3204,
    1.4676,
    0.219,
    2.8237,
)


def resolve_parameters(parameters: Sequence[float] | None) -> tuple[float, ...]:
    """Empty means defaults; anything other than 17 values is rejected."""
    if parameters is None or len(parameters) == 0:
        return DEFAULT_PARAMETERS
    if len(parameters) != N_PARAMETERS:
        raise InvalidParameters(len(parameters))
    return tuple(float(w) for w in parameters)


def parse_parameters(params_str: str) -> tuple[float, ...]:
    try:
        parts = [float(p.strip()) for p in params_str.split(",")]
        if len(parts) != N_PARAMETERS:
            return DEFAULT_PARAMETERS
        return tuple(parts)
    except ValueError:
        return DEFAULT_PARAMETERS
