"""
Per-file analysis pipeline.

Each file is analyzed in an ``AnalysisSession``:

1. Struct pass: every ``#[derive(Accounts)]`` struct is classified, its
   per-struct checks run, and its mutable/initialized sets and seed usages
   go into the session's ``SymbolTable``.
2. Handler pass: every function of each ``#[program]`` module is resolved
   against its ``Context<T>`` parameter and walked by the handler checks.
3. Seed cross-reference over the session's seed usages.

In ``project`` seed scope step 3 is deferred: usages are handed to the
analyzer's project registry and checked once by ``finish()``.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from tree_sitter import Node

from anchor_core.models.diagnostic import Diagnostic

from anchor_audit.analysis.attributes import has_attribute
from anchor_audit.analysis.heuristics import Heuristics, DEFAULT_HEURISTICS
from anchor_audit.analysis.struct_classifier import classify_struct
from anchor_audit.analysis.symbols import HandlerFunction, SeedUsage, SymbolTable
from anchor_audit.analysis.walker import parameter_names, resolve_handler_context
from anchor_audit.checks import HANDLER_CHECKS, STRUCT_CHECKS, check_cross_struct_seeds
from anchor_audit.parsing import RustParseError, SourceUnit, iter_items_with_attributes
from anchor_audit.rules.engine import DiagnosticSink, RuleEngine

logger = logging.getLogger(__name__)

STRUCTURE_RULE_ID = "ANCHOR-000"
PARSE_FAILURE_RULE_ID = "ANCHOR-900"

SEED_SCOPE_FILE = "file"
SEED_SCOPE_PROJECT = "project"
SEED_SCOPES = (SEED_SCOPE_FILE, SEED_SCOPE_PROJECT)


class AnalysisSession:
    """State for one file: its symbol table and diagnostics."""

    def __init__(self, analyzer: "AnchorAnalyzer", unit: SourceUnit):
        self.analyzer = analyzer
        self.unit = unit
        self.heuristics = analyzer.heuristics
        self.symbols = SymbolTable()
        self.sink = DiagnosticSink(analyzer.engine)
        self.struct_checks = [check(self.heuristics) for check in STRUCT_CHECKS]

    def run(self) -> List[Diagnostic]:
        self.classify_structs()
        self.check_handlers()
        if self.analyzer.seed_scope == SEED_SCOPE_FILE:
            check_cross_struct_seeds(self.symbols.seed_usages, self.sink)
        return self.sink.diagnostics

    # ── Pass 1 ───────────────────────────────────────────────────────────

    def classify_structs(self):
        for item, attributes in self._items():
            accounts_struct = classify_struct(self.unit, item, attributes, self.heuristics)
            if accounts_struct is None:
                continue

            self._info(
                f"Found #[derive(Accounts)] struct: {accounts_struct.name}",
                accounts_struct.line,
                struct=accounts_struct.name,
            )
            for check in self.struct_checks:
                check.check(self.unit, accounts_struct, self.sink)
            self.symbols.add_struct(accounts_struct, self.unit.file_path)

        logger.debug(f"{self.unit.file_path}: {len(self.symbols)} accounts structs")

    # ── Pass 2 ───────────────────────────────────────────────────────────

    def check_handlers(self):
        for item, attributes in self._items(include_programs=True):
            if item.type == "mod_item" and self._is_program(attributes):
                self._check_program(item)
            elif (
                self.analyzer.include_instruction_handlers
                and item.type == "function_item"
            ):
                self._check_instruction_handler(item)

    def _check_program(self, module: Node):
        name_node = module.child_by_field_name("name")
        self._info(
            f"Found program module: {self.unit.text(name_node)}",
            self.unit.line_of(name_node if name_node is not None else module),
            module=self.unit.text(name_node),
        )

        for item, _ in iter_items_with_attributes(module.child_by_field_name("body")):
            if item.type != "function_item":
                continue
            handler = self._handler(item)
            self._info(
                f"Function inside program: {handler.name}",
                handler.line,
                handler=handler.name,
            )
            self._run_handler_checks(handler)

    def _check_instruction_handler(self, function: Node):
        name = self.unit.text(function.child_by_field_name("name"))
        if not self.heuristics.is_handler_name(name):
            return
        handler = self._handler(function)
        if not handler.bound_struct:
            return
        self._info(
            f"Instruction handler outside program: {handler.name}",
            handler.line,
            handler=handler.name,
        )
        self._run_handler_checks(handler)

    def _handler(self, function: Node) -> HandlerFunction:
        name_node = function.child_by_field_name("name")
        context_name, bound_struct = resolve_handler_context(self.unit, function, self.heuristics)
        handler = HandlerFunction(
            name=self.unit.text(name_node),
            line=self.unit.line_of(name_node if name_node is not None else function),
            body=function.child_by_field_name("body"),
            parameters=parameter_names(self.unit, function),
            context_name=context_name,
            bound_struct=bound_struct,
        )
        if bound_struct and bound_struct not in self.symbols:
            logger.debug(
                f"{self.unit.file_path}: handler {handler.name} is bound to "
                f"{bound_struct}, which is not declared in this file"
            )
        return handler

    def _run_handler_checks(self, handler: HandlerFunction):
        if handler.body is None:
            return
        for check_class in HANDLER_CHECKS:
            check_class(self.unit, handler, self.symbols, self.sink, self.heuristics).run()

    # ── Helpers ──────────────────────────────────────────────────────────

    def _items(self, container: Optional[Node] = None, include_programs: bool = False) -> Iterator[Tuple[Node, List[Node]]]:
        """
        Items of the file in source order, descending into inline modules.

        Program modules are yielded (when ``include_programs``) but never
        entered; their functions are handled by the handler pass.
        """
        if container is None:
            container = self.unit.root
        for item, attributes in iter_items_with_attributes(container):
            if item.type == "mod_item" and self._is_program(attributes):
                if include_programs:
                    yield item, attributes
                continue
            yield item, attributes
            if item.type == "mod_item":
                yield from self._items(item.child_by_field_name("body"), include_programs)

    def _is_program(self, attributes: List[Node]) -> bool:
        return has_attribute(self.unit, attributes, self.heuristics.program_attribute)

    def _info(self, message: str, line: int, **metadata):
        self.sink.report(
            STRUCTURE_RULE_ID,
            message,
            self.unit.file_path,
            line,
            snippet=self.unit.line_text(line),
            **metadata,
        )


class AnchorAnalyzer:
    """
    Runs the analysis pipeline over parsed Rust files.

    Args:
        engine: Rule engine supplying rule metadata (builtin rules by default)
        heuristics: Recognized names for Anchor constructs
        seed_scope: ``file`` checks seed prefixes per file; ``project``
            collects them across files until ``finish()``
        include_instruction_handlers: Also check free ``handler`` /
            ``handle_*`` functions outside the program module
    """

    def __init__(
        self,
        engine: Optional[RuleEngine] = None,
        heuristics: Heuristics = DEFAULT_HEURISTICS,
        seed_scope: str = SEED_SCOPE_FILE,
        include_instruction_handlers: bool = False
    ):
        if seed_scope not in SEED_SCOPES:
            raise ValueError(f"Invalid seed scope: {seed_scope} (expected one of {', '.join(SEED_SCOPES)})")
        self.engine = engine or RuleEngine()
        self.heuristics = heuristics
        self.seed_scope = seed_scope
        self.include_instruction_handlers = include_instruction_handlers
        self.project_seed_usages: List[SeedUsage] = []

    def begin_run(self):
        """Reset the project seed registry."""
        self.project_seed_usages = []

    def analyze_unit(self, unit: SourceUnit) -> List[Diagnostic]:
        """Analyze one parsed file and return its diagnostics in emission order."""
        session = AnalysisSession(self, unit)
        diagnostics = session.run()
        if self.seed_scope == SEED_SCOPE_PROJECT:
            self.project_seed_usages.extend(session.symbols.seed_usages)
        return diagnostics

    def analyze_source(self, source: str, file_path: str = "<memory>") -> List[Diagnostic]:
        """
        Parse and analyze Rust source text.

        Raises:
            RustParseError: if the source does not parse
        """
        return self.analyze_unit(SourceUnit.from_source(source, file_path))

    def analyze_file(self, path: Path) -> List[Diagnostic]:
        """
        Read, parse and analyze one file.

        Raises:
            RustParseError: if the file cannot be read or parsed
        """
        return self.analyze_unit(SourceUnit.from_file(path))

    def finish(self) -> List[Diagnostic]:
        """
        Flush the project seed registry.

        Returns the cross-file seed diagnostics in project scope, nothing
        in file scope. The registry is emptied either way.
        """
        if self.seed_scope != SEED_SCOPE_PROJECT:
            return []
        sink = DiagnosticSink(self.engine)
        check_cross_struct_seeds(self.project_seed_usages, sink)
        self.project_seed_usages = []
        return sink.diagnostics

    def parse_failure(self, error: RustParseError) -> Diagnostic:
        """Diagnostic for a file that could not be read or parsed."""
        return self.engine.create_diagnostic(
            PARSE_FAILURE_RULE_ID,
            f"Failed to parse {error.file_path}: {error}",
            error.file_path,
            error.line or 1,
            column=error.column,
        )
