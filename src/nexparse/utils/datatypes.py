"""
Default symbols and equates per datatype

The tables live in data/datatypes.yaml so they can be overridden per user;
the built-in copy below is used when that file is missing or incomplete.
"""

from typing import Any, Dict, Optional

from ..config import load_datatypes
from ..core.models import DataType
from .logging import NexusLogger

MAX_STATES = 76

_NUCLEOTIDE_EQUATES = {
    "R": "{AG}", "Y": "{CT}", "M": "{AC}", "K": "{GT}", "S": "{CG}", "W": "{AT}",
    "H": "{ACT}", "B": "{CGT}", "V": "{ACG}", "D": "{AGT}", "N": "{ACGT}", "X": "{ACGT}",
}

FALLBACK_DATATYPES: Dict[str, Dict[str, Any]] = {
    "standard": {"symbols": "01", "equates": {}},
    "dna": {"symbols": "ACGT", "equates": _NUCLEOTIDE_EQUATES},
    "rna": {
        "symbols": "ACGU",
        "equates": {k: v.replace("T", "U") for k, v in _NUCLEOTIDE_EQUATES.items()},
    },
    "nucleotide": {"symbols": "ACGT", "equates": _NUCLEOTIDE_EQUATES},
    "protein": {"symbols": "ACDEFGHIKLMNPQRSTVWY*", "equates": {"B": "{DN}", "Z": "{EQ}"}},
    "continuous": {"symbols": "", "equates": {}},
}


class DataTypeDefaults:
    """Symbols and equate macros a FORMAT DATATYPE starts from"""

    def __init__(self, table: Optional[Dict[str, Dict[str, Any]]] = None):
        self.table = table if table is not None else self.load_table()

    @staticmethod
    def load_table() -> Dict[str, Dict[str, Any]]:
        """Load the datatype table, falling back to the built-in copy

        Returns:
            Dictionary mapping datatype names to {symbols, equates}
        """
        loaded = load_datatypes()
        table = {name: dict(entry) for name, entry in FALLBACK_DATATYPES.items()}
        for name, entry in (loaded or {}).items():
            if not isinstance(entry, dict) or str(name).lower() not in table:
                NexusLogger.warning(f"Ignoring unknown datatype entry '{name}' in datatypes file")
                continue
            target = table[str(name).lower()]
            if "symbols" in entry:
                target["symbols"] = str(entry["symbols"] or "")
            if "equates" in entry:
                target["equates"] = {str(k): str(v) for k, v in (entry["equates"] or {}).items()}
        return table

    def symbols(self, datatype: DataType) -> str:
        return self.table[datatype.value]["symbols"]

    def equates(self, datatype: DataType) -> Dict[str, str]:
        return dict(self.table[datatype.value]["equates"])

    def predefined_count(self, datatype: DataType) -> int:
        """Number of symbols SYMBOLS= appends to; standard symbols are replaced"""
        if datatype is DataType.STANDARD:
            return 0
        return len(self.symbols(datatype))
