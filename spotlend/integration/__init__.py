"""
Driving shell: atomic sequencing and system wiring
"""

from .sequencer import Operation, SequenceResult, Sequencer
from .system import System, build_system

__all__ = [
    "Operation",
    "SequenceResult",
    "Sequencer",
    "System",
    "build_system",
]
