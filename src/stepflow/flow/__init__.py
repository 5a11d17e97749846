"""Step sequencing for conversational skills."""

from stepflow.flow.sequencer import Sequencer
from stepflow.flow.step import Step

__all__ = [
    "Sequencer",
    "Step",
]
