from .deck import (
    Card as Card,
    CardStatus as CardStatus,
    Deck as Deck,
)
from .exceptions import (
    FSRSError as FSRSError,
    Interrupted as Interrupted,
    InvalidParameters as InvalidParameters,
    OptimalNotFound as OptimalNotFound,
)
from .optimizer import (
    R_MAX as R_MAX,
    R_MIN as R_MIN,
    SAMPLE_SIZE as SAMPLE_SIZE,
    BrentResult as BrentResult,
    brent as brent,
    optimal_retention as optimal_retention,
    sample as sample,
)
from .simulate_fsrs import (
    simulate as simulate,
    simulate_day as simulate_day,
)
from .simulation_config import (
    SimulationResult as SimulationResult,
    SimulatorConfig as SimulatorConfig,
)
from .utils import (
    DEFAULT_PARAMETERS as DEFAULT_PARAMETERS,
    parse_parameters as parse_parameters,
    resolve_parameters as resolve_parameters,
)
