"""
Report writer for nexparse

Renders the contents of parsed sections as plain text, the way the sections'
report() methods and the command-line tool present them.
"""

from typing import List

from ..parsers.tokenizer import blanks_to_underscores


class ReportWriter:
    """Write human-readable summaries of parsed sections"""

    def __init__(self, margin: int = 2, show_matrix: bool = True):
        self.margin = " " * margin
        self.show_matrix = show_matrix

    def write_taxa(self, taxa) -> str:
        """Summary of a TaxaSection"""
        lines = [f"{taxa.id} block contains {taxa.count} taxa"]
        for i, label in enumerate(taxa.labels):
            lines.append(f"{self.margin}{i + 1}\t{label}")
        return "\n".join(lines) + "\n"

    def write_assumptions(self, assumptions) -> str:
        """Summary of an AssumptionsSection"""
        lines = [f"{assumptions.id} block contains the following:"]
        groups = (
            ("Character sets", assumptions.charsets, assumptions.default_charset),
            ("Taxon sets", assumptions.taxsets, assumptions.default_taxset),
            ("Exclusion sets", assumptions.exsets, assumptions.default_exset),
        )
        empty = True
        for title, sets, default in groups:
            if not sets:
                continue
            empty = False
            lines.append(f"{self.margin}{title}:")
            for name, indices in sets.items():
                marker = " (default)" if name == default else ""
                lines.append(f"{self.margin * 2}{name}{marker}: {self._format_indices(indices)}")
        if empty:
            lines.append(f"{self.margin}(no sets defined)")
        return "\n".join(lines) + "\n"

    def write_characters(self, section) -> str:
        """Summary of a CharactersSection or DataSection, matrix included"""
        m = self.margin
        lines = [f"{section.id} block contains {section.ntax} taxa and {section.nchar} characters"]

        lines.append(f"{m}Data type is \"{section.datatype.value.upper()}\"")
        lines.append(f"{m}Respecting case" if section.respect_case else f"{m}Ignoring case")
        lines.append(
            f"{m}Multicharacter tokens allowed in data matrix"
            if section.tokens
            else f"{m}Data matrix entries are expected to be single symbols"
        )
        if section.labels and section.transposing:
            lines.append(f"{m}Character labels are expected on left side of matrix")
        elif section.labels:
            lines.append(f"{m}Taxon labels are expected on left side of matrix")
        else:
            lines.append(f"{m}No labels are expected on left side of matrix")

        if any(section.char_labels):
            lines.append(f"{m}Character and character state labels:")
            for j, label in enumerate(section.char_labels):
                states = section.state_labels.get(j, [])
                suffix = f" / {' '.join(states)}" if states else ""
                lines.append(f"{m * 2}{self._original(section, j) + 1}\t{label or '(no label)'}{suffix}")

        lines.append(f"{m}Matrix is transposed" if section.transposing else f"{m}Matrix is not transposed")
        lines.append(f"{m}Matrix is interleaved" if section.interleaving else f"{m}Matrix is not interleaved")
        lines.append(f"{m}Missing data symbol is '{section.missing}'")
        lines.append(
            f"{m}Match character is '{section.match_char}'" if section.match_char else f"{m}No match character specified"
        )
        lines.append(f"{m}Gap character specified is '{section.gap}'" if section.gap else f"{m}No gap character specified")
        lines.append(f"{m}Valid symbols are: {' '.join(section.symbols)}")

        if section.equates:
            lines.append(f"{m}Equate macros in effect:")
            for key, value in section.equates.items():
                lines.append(f"{m * 2}{key} = {value}")
        else:
            lines.append(f"{m}No equate macros have been defined")

        if section.eliminated:
            lines.append(f"{m}The following characters have been eliminated: "
                         f"{self._format_indices(section.eliminated)}")
        else:
            lines.append(f"{m}No characters were eliminated")

        if section.cells is not None:
            excluded = [section.original_column(j) for j in section.active_columns.inactive()]
            if excluded:
                lines.append(f"{m}The following characters have been excluded: {self._format_indices(excluded)}")
            else:
                lines.append(f"{m}No characters have been excluded")
            deleted = [section.original_row(i) for i in section.active_rows.inactive()]
            if deleted:
                lines.append(f"{m}The following taxa have been deleted: {self._format_indices(deleted)}")
            else:
                lines.append(f"{m}No taxa have been deleted")

            if self.show_matrix:
                lines.append(f"{m}Data matrix:")
                lines.extend(self.write_matrix(section))

        return "\n".join(lines) + "\n"

    def write_matrix(self, section) -> List[str]:
        """One line per row: the row label padded to a common width, then the cells"""
        cells = section.cells
        labels = [blanks_to_underscores(section.row_label(i)) or f"row_{i + 1}" for i in range(cells.nrows)]
        width = max((len(label) for label in labels), default=0)
        separator = " " if section.tokens else ""

        lines = []
        for i, label in enumerate(labels):
            row = separator.join(section.cell_text(i, j) for j in range(cells.ncols))
            lines.append(f"{self.margin * 2}{label.ljust(width)}  {row}")
        return lines

    @staticmethod
    def _original(section, j: int) -> int:
        return section.original_column(j) if section.column_map is not None else j

    @staticmethod
    def _format_indices(indices) -> str:
        """Render 0-based indices as 1-based numbers with runs collapsed (1-3 5)"""
        numbers = sorted(i + 1 for i in indices)
        if not numbers:
            return "(none)"
        parts = []
        start = prev = numbers[0]
        for n in numbers[1:]:
            if n == prev + 1:
                prev = n
                continue
            parts.append(str(start) if start == prev else f"{start}-{prev}")
            start = prev = n
        parts.append(str(start) if start == prev else f"{start}-{prev}")
        return " ".join(parts)
