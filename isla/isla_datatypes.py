"""
Defines the core data types for the Isla language runtime.

This module provides the AST node variants produced by the transformer,
the reference/resolution pair used by the evaluator, the context and
environment threaded through execution, the compound runtime values and
the error taxonomy.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union
import collections.abc


# =================================================================
# Errors
# =================================================================

class IslaError(Exception):
    """Base class for errors reported to the person running a program."""
    pass


class UnboundVariable(IslaError):
    def __init__(self, name: str):
        super().__init__(f"I do not know of anything called {name}.")
        self.name = name


class UnboundListTarget(IslaError):
    def __init__(self, name: str):
        super().__init__(f"I do not know of a list called {name}.")
        self.name = name


class UnboundAttributeBase(IslaError):
    def __init__(self, obj_name: str, attr_name: str):
        super().__init__(
            f"I cannot set {attr_name} on {obj_name} because I do not know of anything called {obj_name}."
        )
        self.obj_name = obj_name
        self.attr_name = attr_name


class CircularReference(IslaError):
    def __init__(self, chain: List[str]):
        super().__init__("These names refer to each other in a circle: " + " -> ".join(chain) + ".")
        self.chain = chain


class NotAFunction(IslaError):
    def __init__(self, name: str):
        super().__init__(f"{name} is not something I can run.")
        self.name = name


class UnknownListOperation(IslaError):
    def __init__(self, operation: str):
        super().__init__(f"I do not know how to {operation} with a list.")
        self.operation = operation


class WrongArgument(IslaError):
    """A built-in was handed something it cannot work with."""
    pass


class UnknownNodeKind(Exception):
    """Raised when the evaluator meets a node it has no rule for.

    This is a mismatch between the grammar and the evaluator, never a
    problem with the user's program, so it is not an IslaError.
    """
    def __init__(self, node: Any, where: str = "interpret_ast"):
        tag = getattr(node, "tag", type(node).__name__)
        super().__init__(f"missing case for node '{tag}' in {where}")
        self.node = node
        self.where = where


# =================================================================
# AST Nodes
# =================================================================

@dataclass(frozen=True)
class Node:
    """Base for every AST node. Nodes are never mutated after parsing."""
    tag: ClassVar[str] = "node"
    loc: Optional[Dict[str, Any]] = field(default=None, compare=False, kw_only=True)


@dataclass(frozen=True)
class Identifier(Node):
    tag: ClassVar[str] = "identifier"
    name: str


@dataclass(frozen=True)
class Integer(Node):
    tag: ClassVar[str] = "integer"
    value: int


@dataclass(frozen=True)
class String(Node):
    tag: ClassVar[str] = "string"
    value: str


@dataclass(frozen=True)
class Literal(Node):
    tag: ClassVar[str] = "literal"
    inner: Union[Integer, String]


@dataclass(frozen=True)
class Scalar(Node):
    tag: ClassVar[str] = "scalar"
    identifier: Identifier


@dataclass(frozen=True)
class Object(Node):
    """An attribute of a named object, e.g. `isla height`."""
    tag: ClassVar[str] = "object"
    obj: Identifier
    attr: Identifier


@dataclass(frozen=True)
class Variable(Node):
    tag: ClassVar[str] = "variable"
    inner: Union[Scalar, Object]


@dataclass(frozen=True)
class Value(Node):
    tag: ClassVar[str] = "value"
    inner: Union[Literal, Variable]


@dataclass(frozen=True)
class Assignee(Node):
    tag: ClassVar[str] = "assignee"
    inner: Union[Scalar, Object]


@dataclass(frozen=True)
class ValueAssignment(Node):
    tag: ClassVar[str] = "value_assignment"
    assignee: Assignee
    value: Value


@dataclass(frozen=True)
class TypeAssignment(Node):
    tag: ClassVar[str] = "type_assignment"
    assignee: Assignee
    type_identifier: Identifier


@dataclass(frozen=True)
class ListOperation(Node):
    tag: ClassVar[str] = "list_operation"
    name: str


@dataclass(frozen=True)
class ListAssignment(Node):
    tag: ClassVar[str] = "list_assignment"
    operation: ListOperation
    item: Value
    assignee: Assignee


@dataclass(frozen=True)
class Invocation(Node):
    tag: ClassVar[str] = "invocation"
    callee: Identifier
    argument: Value


@dataclass(frozen=True)
class Expression(Node):
    tag: ClassVar[str] = "expression"
    inner: Node


@dataclass(frozen=True)
class Block(Node):
    tag: ClassVar[str] = "block"
    body: Tuple[Node, ...] = ()


@dataclass(frozen=True)
class Root(Block):
    tag: ClassVar[str] = "root"


# =================================================================
# References
# =================================================================

Path = Union[str, Tuple[str, str]]


@dataclass(frozen=True)
class Reference:
    """A stored indirection: "look this slot up elsewhere".

    `path` is either a bare name or an (object, attribute) pair.
    """
    path: Path

    @property
    def is_attribute(self) -> bool:
        return isinstance(self.path, tuple)

    def render(self) -> str:
        if self.is_attribute:
            return f"{self.path[0]} {self.path[1]}"
        return self.path

    def __repr__(self) -> str:
        return f"Reference({self.render()!r})"


@dataclass
class Resolution:
    """The (reference, stored value) pair produced by reading a value node.

    `ref` is None for literals, which cannot be assigned to. `val` is None
    when the name or attribute is unbound.
    """
    val: Any = None
    ref: Optional[Path] = None

    def stored_form(self) -> Any:
        """What an assignment should store: the alias when there is one."""
        if self.ref is None:
            return self.val
        return Reference(self.ref)


# =================================================================
# Runtime Values
# =================================================================

class IslaObject(collections.abc.MutableMapping):
    """A compound value: attribute bindings plus system metadata.

    `meta["type"]` records the type name the object was instantiated as.
    Metadata is kept apart from the bindings so an attribute can never be
    mistaken for it.
    """
    def __init__(self, bindings: Optional[Dict[str, Any]] = None):
        self.bindings: Dict[str, Any] = dict(bindings or {})
        self.meta: Dict[str, Any] = {}

    def __getitem__(self, key: str) -> Any:
        return self.bindings[key]

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Attribute name must be a str, not {type(key)}")
        self.bindings[key] = value

    def __delitem__(self, key: str):
        del self.bindings[key]

    def __iter__(self):
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    @property
    def type_name(self) -> Optional[str]:
        return self.meta.get("type")

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        return f"<IslaObject type={self.type_name!r} bindings=[{keys}]>"


class IslaList:
    """An ordered, mutable list of bindings.

    Mutation happens through named operations so the keyword in the
    program (`add`, `remove`) selects the method directly.
    """
    OPERATIONS = ("add", "remove")

    def __init__(self, items: Optional[List[Any]] = None):
        self._items: List[Any] = list(items or [])
        self.meta: Dict[str, Any] = {}

    def items(self) -> List[Any]:
        """Returns a snapshot of the current contents, in order."""
        return list(self._items)

    def add(self, item: Any):
        self._items.append(item)

    def remove(self, item: Any):
        """Removes the first item equal to `item`; absent items are ignored."""
        for i, existing in enumerate(self._items):
            if existing == item:
                del self._items[i]
                return

    def operation(self, name: str) -> Callable[[Any], None]:
        if name not in self.OPERATIONS:
            raise UnknownListOperation(name)
        return getattr(self, name)

    def apply(self, name: str, item: Any):
        self.operation(name)(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __eq__(self, other):
        if isinstance(other, IslaList):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"IslaList({self._items!r})"


# =================================================================
# Context and Environment
# =================================================================

TypeConstructor = Callable[[], Any]


class Context(collections.abc.MutableMapping):
    """The mutable variable store for one program run.

    Maps names to bindings and carries the type registry used by type
    assignment. A `generic` constructor must be registered.
    """
    def __init__(self, bindings: Optional[Dict[str, Any]] = None,
                 types: Optional[Dict[str, TypeConstructor]] = None):
        self.bindings: Dict[str, Any] = dict(bindings or {})
        self.types: Dict[str, TypeConstructor] = dict(types or {})

    def __getitem__(self, key: str) -> Any:
        return self.bindings[key]

    def __setitem__(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Context key must be a str, not {type(key)}")
        self.bindings[key] = value

    def __delitem__(self, key: str):
        del self.bindings[key]

    def __iter__(self):
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def type_constructor(self, name: str) -> TypeConstructor:
        """Looks up a type constructor, falling back to `generic`."""
        ctor = self.types.get(name)
        if ctor is None:
            ctor = self.types["generic"]
        return ctor

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        return f"<Context bindings=[{keys}] types=[{', '.join(self.types)}]>"


@dataclass
class Environment:
    """The context plus the return value of the current statement."""
    ctx: Context
    ret: Any = None
