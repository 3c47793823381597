"""Tests for SectionDispatcher and the NexusHost notifications"""

import io
import logging

from nexparse import build_dispatcher, parse_stream, parse_string
from nexparse.parsers.dispatcher import NexusHost

TAXA = """BEGIN TAXA;
  DIMENSIONS NTAX=3;
  TAXLABELS A B C;
END;
"""


class RecordingHost(NexusHost):
    """Host that remembers the order of notifications"""

    def __init__(self):
        super().__init__()
        self.events = []
        self.reported = []

    def execute_starting(self):
        self.events.append("start")

    def execute_stopping(self):
        self.events.append("stop")

    def entering_section(self, name):
        self.events.append(f"enter {name}")

    def exiting_section(self, name):
        self.events.append(f"exit {name}")

    def debug_report(self, section):
        self.reported.append(section.id)


class TestDocumentStructure:
    """Reading whole documents"""

    def test_taxa_only(self):
        document = parse_string("#NEXUS\n" + TAXA)
        assert document.completed
        assert document.taxa.labels == ["A", "B", "C"]
        assert document.matrix is None

    def test_missing_nexus_marker(self):
        document = parse_string(TAXA)
        assert not document.completed
        assert document.errors[0].message == (
            "Expecting #NEXUS to be the first token in the file, but found BEGIN instead"
        )

    def test_nexus_marker_ignores_case(self):
        assert parse_string("#nexus\n" + TAXA).completed

    def test_empty_after_marker(self):
        document = parse_string("#NEXUS\n")
        assert document.completed
        assert document.taxa.is_empty

    def test_endblock(self):
        document = parse_string("#NEXUS\nBEGIN TAXA; DIMENSIONS NTAX=1; TAXLABELS x; ENDBLOCK;")
        assert document.completed
        assert document.taxa.labels == ["x"]

    def test_stream(self):
        document = parse_stream(io.StringIO("#NEXUS\n" + TAXA))
        assert document.taxa.count == 3

    def test_notifications_in_order(self):
        host = RecordingHost()
        dispatcher, _ = build_dispatcher(host)
        assert dispatcher.execute_string("#NEXUS\n" + TAXA)
        assert host.events == ["start", "enter TAXA", "exit TAXA", "stop"]

    def test_no_start_stop_notifications(self):
        host = RecordingHost()
        dispatcher, _ = build_dispatcher(host)
        dispatcher.execute_string("#NEXUS\n" + TAXA, notify_start_stop=False)
        assert host.events == ["enter TAXA", "exit TAXA"]


class TestSkipping:
    """Unknown, disabled and detached sections"""

    def test_unknown_section_is_skipped(self, caplog):
        text = "#NEXUS\nBEGIN TREES;\n  TREE t = (A,B);\nEND;\n" + TAXA
        with caplog.at_level(logging.WARNING, logger="nexparse"):
            document = parse_string(text)
        assert document.completed
        assert document.skipped_sections == ["TREES"]
        assert document.taxa.count == 3
        assert "Skipping unknown block (TREES)" in caplog.text

    def test_disabled_section(self):
        dispatcher, document = build_dispatcher()
        document.taxa.disable()
        assert dispatcher.execute_string("#NEXUS\n" + TAXA)
        assert dispatcher.host.skipped_sections == ["TAXA"]
        assert document.taxa.is_empty

    def test_detached_section(self):
        dispatcher, document = build_dispatcher()
        dispatcher.detach(document.taxa)
        assert document.taxa not in dispatcher.sections
        assert dispatcher.execute_string("#NEXUS\n" + TAXA)
        assert dispatcher.host.skipped_sections == ["TAXA"]

    def test_end_of_file_in_skipped_section(self):
        document = parse_string("#NEXUS\nBEGIN TREES;\n  TREE t = (A,B);\n")
        assert not document.completed
        assert document.errors[0].message == "Encountered end of file before END or ENDBLOCK in block TREES"

    def test_missing_semicolon_after_skipped_end(self):
        document = parse_string("#NEXUS\nBEGIN TREES;\nEND\n" + TAXA)
        assert document.errors[0].message == (
            "Expecting ';' after END or ENDBLOCK command, but found BEGIN instead"
        )

    def test_end_of_file_after_begin(self):
        document = parse_string("#NEXUS\nBEGIN")
        assert not document.completed

    def test_skipped_command_in_section(self, caplog):
        text = "#NEXUS\nBEGIN TAXA;\n  DIMENSIONS NTAX=1;\n  TAXLABELS x;\n  FOO bar;\nEND;\n"
        with caplog.at_level(logging.WARNING, logger="nexparse"):
            document = parse_string(text)
        assert document.taxa.skipped_commands == ["FOO"]
        assert "Skipping unknown command (FOO) in TAXA section" in caplog.text


class TestErrors:
    """A NexusError stops the run and clears the failing section"""

    def test_section_reset_after_error(self):
        text = "#NEXUS\n" + TAXA + (
            "BEGIN CHARACTERS;\n  DIMENSIONS NCHAR=2;\n  MATRIX\n    A 01\n    B 12\n    C 00\n  ;\nEND;\n"
        )
        document = parse_string(text)
        assert not document.completed
        assert len(document.errors) == 1
        assert document.characters.cells is None
        assert document.characters.is_empty
        assert document.taxa.count == 3

    def test_later_sections_not_read(self):
        text = "#NEXUS\nBEGIN TAXA;\n  DIMENSIONS NTAX=0;\nEND;\n" + TAXA
        document = parse_string(text)
        assert not document.completed
        assert document.taxa.is_empty

    def test_error_position(self):
        document = parse_string("#NEXUS\nBEGIN TAXA;\n  DIMENSIONS NTAX=two;\nEND;\n")
        error = document.errors[0]
        assert error.message == "NTAX should be greater than zero (two was specified)"
        assert (error.line, error.column) == (3, 19)
        assert "line 3, column 19" in str(error)

    def test_too_few_taxon_labels(self):
        document = parse_string("#NEXUS\nBEGIN TAXA;\n  DIMENSIONS NTAX=3;\n  TAXLABELS A B;\nEND;\n")
        assert document.errors[0].message == "Expecting 3 taxon labels but found only 2"

    def test_duplicate_taxon_label(self):
        document = parse_string("#NEXUS\nBEGIN TAXA;\n  DIMENSIONS NTAX=2;\n  TAXLABELS A a;\nEND;\n")
        assert document.errors[0].message == "Taxon label a has already been defined"


class TestCommandComments:
    """[!...] output comments and [&...] command comments"""

    def test_output_comment(self):
        document = parse_string("#NEXUS\n[!Hello there]\n" + TAXA)
        assert document.comments == ["Hello there"]

    def test_leave_stops_reading(self):
        host = RecordingHost()
        dispatcher, document = build_dispatcher(host)
        assert dispatcher.execute_string("#NEXUS\n[&LEAVE]\n" + TAXA)
        assert document.taxa.is_empty
        assert host.events == ["start", "stop"]

    def test_showall_reports_every_section(self):
        host = RecordingHost()
        dispatcher, _ = build_dispatcher(host)
        dispatcher.execute_string("#NEXUS\n" + TAXA + "[&SHOWALL]\n")
        assert host.reported == ["TAXA", "CHARACTERS", "DATA", "ASSUMPTIONS"]

    def test_default_host_logs_reports(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="nexparse"):
            parse_string("#NEXUS\n" + TAXA + "[&SHOWALL]\n")
        assert "TAXA block contains 3 taxa" in caplog.text
