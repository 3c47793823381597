"""
nexparse Public API

High-level functions for reading NEXUS documents with the standard set of
section readers (TAXA, CHARACTERS, DATA and ASSUMPTIONS) already registered.
"""

from pathlib import Path
from typing import Optional, TextIO, Tuple, Union

from .core.models import NexusDocument
from .parsers.dispatcher import NexusHost, SectionDispatcher
from .parsers.sections import AssumptionsSection, CharactersSection, DataSection, TaxaSection
from .utils.datatypes import DataTypeDefaults
from .utils.logging import NexusLogger


def build_dispatcher(
    host: Optional[NexusHost] = None, datatypes: Optional[DataTypeDefaults] = None
) -> Tuple[SectionDispatcher, NexusDocument]:
    """
    Create a dispatcher with the standard section readers registered.

    Args:
        host: Receiver for errors and notifications (a NexusHost by default)
        datatypes: Datatype tables shared by the matrix sections

    Returns:
        The dispatcher and the (still empty) document its sections fill in

    Example:
        dispatcher, document = build_dispatcher()
        if dispatcher.execute_string(text):
            print(document.matrix.report())
    """
    datatypes = datatypes or DataTypeDefaults()
    taxa = TaxaSection()
    assumptions = AssumptionsSection(taxa)
    characters = CharactersSection(taxa, assumptions, datatypes)
    data = DataSection(taxa, assumptions, datatypes)

    dispatcher = SectionDispatcher(host)
    for section in (taxa, characters, data, assumptions):
        dispatcher.add(section)

    document = NexusDocument(taxa=taxa, characters=characters, data=data, assumptions=assumptions)
    return dispatcher, document


def _finish(dispatcher: SectionDispatcher, document: NexusDocument, completed: bool) -> NexusDocument:
    host = dispatcher.host
    document.completed = completed
    document.errors = list(host.errors)
    document.comments = list(host.comments)
    document.skipped_sections = list(host.skipped_sections)
    return document


def parse_string(text: str, host: Optional[NexusHost] = None) -> NexusDocument:
    """
    Parse NEXUS content held in a string.

    Args:
        text: Complete NEXUS document
        host: Optional NexusHost to receive notifications

    Returns:
        NexusDocument; check its completed flag and errors list
    """
    dispatcher, document = build_dispatcher(host)
    return _finish(dispatcher, document, dispatcher.execute_string(text))


def parse_stream(stream: TextIO, host: Optional[NexusHost] = None) -> NexusDocument:
    """Parse NEXUS content from an open text stream"""
    dispatcher, document = build_dispatcher(host)
    return _finish(dispatcher, document, dispatcher.execute_stream(stream))


def parse_file(path: Union[str, Path], host: Optional[NexusHost] = None) -> NexusDocument:
    """
    Parse a NEXUS file.

    Args:
        path: Path to the file (read as UTF-8)
        host: Optional NexusHost to receive notifications

    Returns:
        NexusDocument; check its completed flag and errors list
    """
    NexusLogger.info(f"Parsing NEXUS file {path}")
    with open(path, encoding="utf-8", newline="") as f:
        return parse_stream(f, host)
