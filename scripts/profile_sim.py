import cProfile
import io
import os
import pstats
import sys

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from fsrs_retention.simulate_fsrs import simulate
from fsrs_retention.simulation_config import SimulatorConfig
from fsrs_retention.utils import DEFAULT_PARAMETERS


def profile_sim() -> None:
    config = SimulatorConfig(deck_size=10000, learn_span=365, learn_limit=50)

    pr = cProfile.Profile()
    pr.enable()
    simulate(config, DEFAULT_PARAMETERS, 0.9, seed=42)
    pr.disable()

    s = io.StringIO()
    sortby = "cumulative"
    ps = pstats.Stats(pr, stream=s).sort_stats(sortby)
    ps.print_stats(30)
    print(s.getvalue())


if __name__ == "__main__":
    profile_sim()
