"""
nexparse - NEXUS data file reader

This package reads NEXUS documents section by section, keeping the position
of every token for error reporting, and exposes the decoded character matrix
together with the taxon registry and the assumption sets.
"""

__version__ = "1.0.0"

from .api import build_dispatcher, parse_file, parse_stream, parse_string
from .core.cells import Cell, CellKind, CellStore
from .core.indexing import ActiveSet, IndexMap
from .core.models import DataType, FilePosition, NexusDocument, ReadOptions, SectionKind, Token
from .parsers.dispatcher import NexusHost, SectionDispatcher
from .parsers.range_set import ParsedSet, RangeSetParser
from .parsers.sections import (
    AssumptionsSection,
    CharactersSection,
    DataSection,
    ExclusionTarget,
    NexusSection,
    TaxaSection,
)
from .parsers.tokenizer import Tokenizer
from .utils.errors import LabelNotFoundError, NexusError
from .writers.report_writer import ReportWriter

# Public API
__all__ = [
    # Version
    "__version__",
    # Core models
    "FilePosition",
    "Token",
    "ReadOptions",
    "DataType",
    "SectionKind",
    "NexusDocument",
    "Cell",
    "CellKind",
    "CellStore",
    "IndexMap",
    "ActiveSet",
    # Errors
    "NexusError",
    "LabelNotFoundError",
    # Parsing machinery
    "Tokenizer",
    "RangeSetParser",
    "ParsedSet",
    "SectionDispatcher",
    "NexusHost",
    # Sections
    "NexusSection",
    "TaxaSection",
    "CharactersSection",
    "DataSection",
    "AssumptionsSection",
    "ExclusionTarget",
    # Writer
    "ReportWriter",
    # High-level API functions
    "build_dispatcher",
    "parse_string",
    "parse_stream",
    "parse_file",
    "write_report",
]


def write_report(document: NexusDocument, show_matrix: bool = True) -> str:
    """Render every non-empty section of a parsed document as text

    Args:
        document: Result of parse_string/parse_file
        show_matrix: Include the matrix dump for CHARACTERS/DATA sections

    Returns:
        Report text, sections separated by blank lines
    """
    writer = ReportWriter(show_matrix=show_matrix)
    parts = []
    for section in document.sections:
        if section.is_empty:
            continue
        if isinstance(section, CharactersSection):
            parts.append(writer.write_characters(section))
        else:
            parts.append(section.report())
    return "\n".join(parts)
