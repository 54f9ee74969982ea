"""
The Isla standard library: the initial environment, the type registry and
the built-in functions.
"""
import inspect
from typing import Any, Dict, Optional

from isla.isla_datatypes import Context, Environment, IslaObject, IslaList, TypeConstructor, WrongArgument
from isla.isla_printer import Printer


def default_types() -> Dict[str, TypeConstructor]:
    """A fresh type registry. `generic` is the fallback for unknown names."""
    return {
        "generic": IslaObject,
        "list": IslaList,
    }


class StdLib:
    """Contains Python implementations for all Isla built-ins.

    Every built-in receives the current Environment and its single raw
    argument, which may still be a Reference. Built-ins resolve it themselves.
    """
    def __init__(self, evaluator=None):
        if evaluator is None:
            from isla.isla_interpreter import Evaluator
            evaluator = Evaluator()
        self.evaluator = evaluator
        self.printer = Printer()

    def functions(self) -> Dict[str, Any]:
        """Built-ins keyed by their Isla name (`_some_name` -> `some-name`)."""
        out = {}
        for name, member in inspect.getmembers(self):
            if name.startswith('_') and not name.startswith('__') and callable(member):
                out[name[1:].replace('_', '-')] = member
        return out

    # --- Side Effects and I/O ---
    def _write(self, env: Environment, param: Any):
        """Writes a value out; the written text is also the return value."""
        value = self.evaluator.resolve(param, env)
        message = value if isinstance(value, str) else self.printer.pformat(value)
        self.evaluator.side_effects.append({"topics": ["stdout"], "message": message})
        return message

    # --- Inspection ---
    def _describe(self, env: Environment, param: Any):
        value = self.evaluator.resolve(param, env)
        return self.printer.describe(value)

    def _count(self, env: Environment, param: Any):
        value = self.evaluator.deref(param, env)
        if isinstance(value, IslaList):
            return len(value)
        if isinstance(value, IslaObject):
            return len(value)
        if isinstance(value, str):
            return len(value)
        raise WrongArgument(f"count expects a list, an object or some text, not {self.printer.describe(value)}")


def get_initial_env(evaluator=None, stdlib: Optional[StdLib] = None) -> Environment:
    """Builds a brand new environment; nothing is shared between calls."""
    if stdlib is None:
        stdlib = StdLib(evaluator)
    ctx = Context(bindings=stdlib.functions(), types=default_types())
    return Environment(ctx)
