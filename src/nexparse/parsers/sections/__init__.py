"""
Section readers for nexparse

Each reader handles one kind of BEGIN ... END; section.
"""

from .assumptions import AssumptionsSection, ExclusionTarget
from .base import NexusSection
from .characters import CharactersSection, DataSection
from .taxa import TaxaSection

__all__ = [
    'NexusSection',
    'TaxaSection',
    'CharactersSection',
    'DataSection',
    'AssumptionsSection',
    'ExclusionTarget',
]
