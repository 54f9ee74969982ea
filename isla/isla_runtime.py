from pathlib import Path
from typing import Any, List, Optional, Literal, Dict
from dataclasses import dataclass, field

import yaml
from koine import Parser

from isla.isla_transformer import IslaTransformer
from isla.isla_interpreter import Evaluator
from isla.isla_datatypes import Context, Environment, IslaError, Root
from isla.isla_library import get_initial_env, default_types


GRAMMAR_PATH = Path(__file__).parent.parent / "grammar" / "isla_grammar.yaml"

Token = Dict[str, Any]


def load_parser(grammar_path: Optional[Path] = None) -> Parser:
    """Builds a koine Parser from the Isla grammar file."""
    path = Path(grammar_path or GRAMMAR_PATH)
    with path.open(encoding="utf-8") as f:
        grammar_def = yaml.safe_load(f)
    return Parser(grammar_def)


class ParseError(IslaError):
    def __init__(self, message: str, token: Optional[Token] = None):
        super().__init__(message)
        self.token = token


def parse(source_code: str, parser=None, transformer: Optional[IslaTransformer] = None) -> Root:
    """Parses Isla source text into a Root node."""
    parser = parser or ScriptRunner.default_parser()
    transformer = transformer or IslaTransformer()
    parse_out = parser.parse(source_code)
    if isinstance(parse_out, dict) and 'status' in parse_out:
        if parse_out.get('status') != 'success':
            base = parse_out.get('error_message') or str(parse_out)
            raise ParseError(base, parse_out.get('error_node'))
        ast_node = parse_out.get('ast')
        if ast_node is None:
            raise ParseError("missing AST in parser result")
    else:
        ast_node = parse_out
    return transformer.transform(ast_node)


def interpret(code: str, env: Optional[Environment] = None, parser=None) -> Environment:
    """Parses then evaluates `code`. A fresh environment is built when none is given."""
    return Evaluator().interpret_ast(parse(code, parser), env)


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_token: Optional[Token] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Formats an error message with line and column if available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")

        if self.error_token and 'line' in self.error_token:
            line = self.error_token.get('line')
            col = self.error_token.get('col')
            if not msg.startswith("Error on line "):
                col_info = f", col {col}" if col is not None else ""
                return f"Error on line {line}{col_info}: {msg}"
        return msg


class ScriptRunner:
    """Parses, transforms, and executes Isla code.

    The environment persists across `handle_script` calls, so a REPL can
    evaluate a program one line at a time.
    """

    _parser: Optional[Parser] = None
    _transformer: Optional[IslaTransformer] = None

    @classmethod
    def default_parser(cls) -> Parser:
        if cls._parser is None:
            cls._parser = load_parser()
        return cls._parser

    def __init__(self, parser=None, load_library: bool = True):
        if ScriptRunner._transformer is None:
            ScriptRunner._transformer = IslaTransformer()

        self.parser = parser if parser is not None else ScriptRunner.default_parser()
        self.transformer = ScriptRunner._transformer
        self.evaluator = Evaluator()
        self._load_library = load_library
        self.env = self._fresh_env()

    def _fresh_env(self) -> Environment:
        if self._load_library:
            return get_initial_env(self.evaluator)
        return Environment(Context(types=default_types()))

    def reset(self):
        """Discards every binding made so far."""
        self.env = self._fresh_env()

    def _source_context(self, source: str, line: int, col: int) -> str:
        lines = source.splitlines()
        if not (1 <= line <= len(lines)):
            return ""
        text = lines[line - 1]
        caret = " " * max(col - 1, 0) + "^"
        return f"{text}\n{caret}"

    def _format_error(self, e: Exception, source: str, node) -> tuple[str, Optional[dict]]:
        match e:
            case ParseError() as pe:
                token = pe.token or {}
                line = token.get('line'); col = token.get('col')
                msg = f"ParseError: {pe}"
                if line is not None and col is not None:
                    msg = f"{msg} (line {line}, col {col})\n{self._source_context(source, line, col)}"
                return msg, pe.token
            case _:
                msg = f"{type(e).__name__}: {e}"

        loc = getattr(node, 'loc', None)
        if loc and loc.get('line') is not None:
            context = self._source_context(source, loc['line'], loc.get('col') or 1)
            if context:
                msg = f"{msg}\n{context}"
            return msg, loc
        return msg, None

    def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script."""
        self.evaluator.side_effects.clear()
        self.evaluator.current_node = None
        try:
            root = parse(source_code, self.parser, self.transformer)
            self.env.ret = None
            # Errors leave the environment as the failed statement found it.
            self.env = self.evaluator.interpret_ast(root, self.env)
            return ExecutionResult(
                status='success',
                value=self.env.ret,
                side_effects=list(self.evaluator.side_effects),
            )
        except IslaError as e:
            err_msg, err_token = self._format_error(e, source_code, self.evaluator.current_node)
            self.evaluator.side_effects.append({'topics': ['stderr'], 'message': err_msg})
            return ExecutionResult(
                status='error',
                error_message=err_msg,
                error_token=err_token,
                side_effects=list(self.evaluator.side_effects),
            )
