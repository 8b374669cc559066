"""Base classes for per-struct and per-handler checks."""

from abc import ABC, abstractmethod

from anchor_audit.analysis.heuristics import Heuristics, DEFAULT_HEURISTICS
from anchor_audit.analysis.symbols import AccountsStruct, HandlerFunction, SymbolTable
from anchor_audit.analysis.walker import BodyWalker
from anchor_audit.parsing import SourceUnit
from anchor_audit.rules.engine import DiagnosticSink


class StructCheck(ABC):
    """A check run once per accounts struct, right after classification."""

    name: str = "StructCheck"
    rule_id: str = ""

    def __init__(self, heuristics: Heuristics = DEFAULT_HEURISTICS):
        self.heuristics = heuristics

    @abstractmethod
    def check(self, unit: SourceUnit, accounts_struct: AccountsStruct, sink: DiagnosticSink):
        """Report findings for ``accounts_struct`` into ``sink``."""
        pass


class HandlerCheck(BodyWalker):
    """
    A check run over one handler body.

    Subclasses override walker hooks; ``run`` walks the body once.
    """

    name: str = "HandlerCheck"
    rule_id: str = ""

    def __init__(
        self,
        unit: SourceUnit,
        handler: HandlerFunction,
        symbols: SymbolTable,
        sink: DiagnosticSink,
        heuristics: Heuristics = DEFAULT_HEURISTICS
    ):
        super().__init__(unit, heuristics)
        self.handler = handler
        self.symbols = symbols
        self.sink = sink

    @property
    def receiver(self) -> str:
        return self.handler.context_name or self.heuristics.default_context_name

    def run(self):
        self.walk(self.handler.body)

    def report(self, message: str, node, rule_id: str = "", **metadata):
        line = self.unit.line_of(node)
        return self.sink.report(
            rule_id or self.rule_id,
            message,
            self.unit.file_path,
            line,
            snippet=self.unit.line_text(line),
            column=self.unit.column_of(node),
            handler=self.handler.name,
            **metadata,
        )
