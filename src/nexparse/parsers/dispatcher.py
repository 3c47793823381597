"""
Section dispatcher

Drives a whole NEXUS document: checks the #NEXUS marker, hands each
BEGIN name; ... END; section to the registered reader with a matching id, and
skips sections nobody registered for. Everything the application may want to
hear about (errors, skipped sections, output comments) goes through a
NexusHost.
"""

from typing import List, Optional, TextIO

from ..core.models import ReadOptions
from ..utils.errors import NexusError
from ..utils.logging import NexusLogger
from .sections.base import NexusSection
from .tokenizer import Tokenizer, blanks_to_underscores


class NexusHost:
    """Receives notifications from the dispatcher.

    The default implementation logs every event and keeps the errors,
    output comments and skipped section names for later inspection.
    Subclass and override the hooks to react differently.
    """

    def __init__(self):
        self.errors: List[NexusError] = []
        self.comments: List[str] = []
        self.skipped_sections: List[str] = []

    def execute_starting(self) -> None:
        NexusLogger.info("Starting to execute NEXUS file")

    def execute_stopping(self) -> None:
        NexusLogger.info("Finished executing NEXUS file")

    def entering_section(self, name: str) -> None:
        NexusLogger.debug(f"Reading \"{name}\" block...")

    def exiting_section(self, name: str) -> None:
        NexusLogger.debug(f"Finished with \"{name}\" block")

    def output_comment(self, comment: str) -> None:
        self.comments.append(comment)
        NexusLogger.info(comment)

    def nexus_error(self, error: NexusError) -> None:
        self.errors.append(error)
        NexusLogger.error(str(error))

    def skipping_disabled_section(self, name: str) -> None:
        self.skipped_sections.append(name)
        NexusLogger.warning(f"Skipping disabled block ({name})...")

    def skipping_section(self, name: str) -> None:
        self.skipped_sections.append(name)
        NexusLogger.warning(f"Skipping unknown block ({name})...")

    def debug_report(self, section: NexusSection) -> None:
        NexusLogger.debug(section.report())


class SectionDispatcher:
    """Routes NEXUS sections to registered readers"""

    def __init__(self, host: Optional[NexusHost] = None):
        self.host = host or NexusHost()
        self._sections: List[NexusSection] = []

    @property
    def sections(self) -> List[NexusSection]:
        return list(self._sections)

    def add(self, section: NexusSection) -> None:
        """Register a section reader; readers are tried in registration order"""
        self._sections.append(section)

    def detach(self, section: NexusSection) -> None:
        """Unregister a section reader without touching its contents"""
        self._sections = [s for s in self._sections if s is not section]

    def execute_string(self, text: str, notify_start_stop: bool = True) -> bool:
        return self.execute(Tokenizer.from_string(text, self.host.output_comment), notify_start_stop)

    def execute_stream(self, stream: TextIO, notify_start_stop: bool = True) -> bool:
        return self.execute(Tokenizer(stream, self.host.output_comment), notify_start_stop)

    def execute(self, tokenizer: Tokenizer, notify_start_stop: bool = True) -> bool:
        """Read a whole document from tokenizer.

        Args:
            tokenizer: Token source positioned at the start of the document
            notify_start_stop: Call the host's execute_starting/execute_stopping hooks

        Returns:
            True if the document was read without errors; otherwise the error
            has been passed to the host and False is returned
        """
        try:
            token = tokenizer.next()
            if not token.equals("#NEXUS"):
                raise NexusError.at(
                    f"Expecting #NEXUS to be the first token in the file, but found {token.text} instead", token
                )
        except NexusError as e:
            self.host.nexus_error(e)
            return False

        if notify_start_stop:
            self.host.execute_starting()

        options = ReadOptions(save_command_comments=True)
        while True:
            try:
                token = tokenizer.next(options)
            except NexusError as e:
                self.host.nexus_error(e)
                return False

            if token.at_eof:
                break
            if token.equals("BEGIN"):
                if not self._execute_section(tokenizer):
                    return False
            elif token.equals("&SHOWALL"):
                for section in self._sections:
                    self.host.debug_report(section)
            elif token.equals("&LEAVE"):
                break

        if notify_start_stop:
            self.host.execute_stopping()
        return True

    def _execute_section(self, tokenizer: Tokenizer) -> bool:
        try:
            token = tokenizer.next()
            if token.at_eof:
                raise NexusError.at("Unexpected end of file after BEGIN", token)
        except NexusError as e:
            self.host.nexus_error(e)
            return False

        name = token.text
        disabled_seen = False
        for section in self._sections:
            if not token.equals(section.id):
                continue
            if not section.enabled:
                disabled_seen = True
                self.host.skipping_disabled_section(blanks_to_underscores(name))
                continue

            self.host.entering_section(section.id)
            section.reset()
            try:
                section.read(tokenizer)
            except NexusError as e:
                self.host.nexus_error(e)
                section.reset()
                return False
            self.host.exiting_section(section.id)
            return True

        if not disabled_seen:
            self.host.skipping_section(blanks_to_underscores(name))
        try:
            self._skip_section(tokenizer, name)
        except NexusError as e:
            self.host.nexus_error(e)
            return False
        return True

    @staticmethod
    def _skip_section(tokenizer: Tokenizer, name: str) -> None:
        """Consume tokens through END; or ENDBLOCK;"""
        while True:
            token = tokenizer.next()
            if token.at_eof:
                raise NexusError.at(f"Encountered end of file before END or ENDBLOCK in block {name}", token)
            if token.equals("END") or token.equals("ENDBLOCK"):
                following = tokenizer.next()
                if not following.equals(";"):
                    raise NexusError.at(
                        "Expecting ';' after END or ENDBLOCK command, but found "
                        f"{following.text} instead", following
                    )
                return
