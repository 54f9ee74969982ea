"""
The core Isla interpreter: the Evaluator and its reference resolution.
"""
import os
import sys
from typing import Any, Callable, List, Optional

from isla.isla_datatypes import (
    Node, Root, Block, Expression, ValueAssignment, TypeAssignment, ListAssignment,
    Invocation, Value, Literal, Variable, Scalar, Object, Assignee, Integer, String,
    Identifier, Reference, Resolution, Context, Environment, IslaObject, IslaList,
    UnknownNodeKind, UnboundListTarget, UnboundAttributeBase, UnboundVariable,
    CircularReference, NotAFunction,
)
from isla.isla_library import get_initial_env


class Evaluator:
    """The Isla execution engine.

    Walks AST nodes, threading an Environment through statements. All
    evaluation is synchronous; one Evaluator should own a Context at a time.
    """
    def __init__(self, initial_env_factory: Optional[Callable[[], Environment]] = None):
        self.initial_env_factory = initial_env_factory
        self.side_effects: List[Any] = []
        self.current_node = None

    def _dbg(self, *parts):
        if os.environ.get("ISLA_DEBUG"):
            try:
                print("[DBG]", *parts, file=sys.stderr)
            except Exception:
                pass

    def _new_env(self) -> Environment:
        if self.initial_env_factory is None:
            return get_initial_env(self)
        return self.initial_env_factory()

    # ---------------------------------------------------------------
    # Evaluation
    # ---------------------------------------------------------------

    def interpret_ast(self, node: Node, env: Optional[Environment] = None) -> Any:
        """Recursive dispatcher for evaluating any AST node.

        Statement-level nodes yield an Environment; `value` yields a
        Resolution; leaves yield their payload.
        """
        match node:
            case Root():
                if env is None:
                    env = self._new_env()
                return self.run_sequence(node.body, env)

            case Block():
                return self.run_sequence(node.body, env)

            case Expression():
                return self.interpret_ast(node.inner, env)

            case ValueAssignment():
                value = self.interpret_ast(node.value, env).stored_form()
                self._dbg("assign", self._assignee_path(node.assignee), "<-", value)
                ctx = self.assign(env.ctx, node.assignee, value)
                return Environment(ctx)

            case TypeAssignment():
                type_name = self.interpret_ast(node.type_identifier, env)
                value = self.instantiate_type(env.ctx.type_constructor(type_name), type_name)
                ctx = self.assign(env.ctx, node.assignee, value)
                return Environment(ctx)

            case ListAssignment():
                current = self.evaluate_value(node.assignee.inner, env)
                if current.val is None:
                    raise UnboundListTarget(Reference(current.ref).render())
                item = self.interpret_ast(node.item, env).stored_form()
                try:
                    target = self.deref(current.val, env)
                except UnboundVariable:
                    raise UnboundListTarget(Reference(current.ref).render()) from None
                if not isinstance(target, IslaList):
                    raise UnboundListTarget(Reference(current.ref).render())
                target.apply(node.operation.name, item)
                # Store back what was there, so an alias stays an alias.
                ctx = self.assign(env.ctx, node.assignee, current.val)
                return Environment(ctx)

            case Invocation():
                name = self.interpret_ast(node.callee, env)
                fn = self.resolve(Reference(name), env)
                if not callable(fn):
                    raise NotAFunction(name)
                arg = self.interpret_ast(node.argument, env)
                if arg.ref is not None and arg.val is None:
                    raise UnboundVariable(Reference(arg.ref).render())
                param = arg.val
                self._dbg("call", name, param)
                return Environment(env.ctx, fn(env, param))

            case Value():
                return self.evaluate_value(node.inner, env)

            case Integer() | String():
                return node.value

            case Identifier():
                return node.name

            case _:
                raise UnknownNodeKind(node)

    def evaluate_value(self, node: Node, env: Environment) -> Resolution:
        """Reads a literal, variable or attribute without dereferencing it."""
        match node:
            case Literal():
                return Resolution(val=self.interpret_ast(node.inner, env))

            case Variable():
                return self.evaluate_value(node.inner, env)

            case Scalar():
                identifier = self.interpret_ast(node.identifier, env)
                return Resolution(val=env.ctx.get(identifier), ref=identifier)

            case Object():
                obj_id = node.obj.name
                attr_id = node.attr.name
                return Resolution(val=self._read_attribute(env, obj_id, attr_id), ref=(obj_id, attr_id))

            case _:
                raise UnknownNodeKind(node, "evaluate_value")

    def _read_attribute(self, env: Environment, obj_id: str, attr_id: str) -> Any:
        base = env.ctx.get(obj_id)
        if isinstance(base, Reference):
            base = self.deref(base, env)
        if isinstance(base, IslaObject):
            return base.get(attr_id)
        return None

    # ---------------------------------------------------------------
    # Assignment
    # ---------------------------------------------------------------

    def _assignee_path(self, assignee: Assignee):
        match assignee.inner:
            case Scalar() as scalar:
                return scalar.identifier.name
            case Object() as obj:
                return (obj.obj.name, obj.attr.name)
            case other:
                raise UnknownNodeKind(other, "assign")

    def assign(self, ctx: Context, assignee: Assignee, value: Any) -> Context:
        """Writes `value` into the slot named by `assignee`; returns `ctx`."""
        match assignee.inner:
            case Scalar() as scalar:
                ctx[scalar.identifier.name] = value
                return ctx

            case Object() as obj:
                obj_id = obj.obj.name
                attr_id = obj.attr.name
                base = ctx.get(obj_id)
                if isinstance(base, Reference):
                    base = self.deref(base, Environment(ctx))
                if not isinstance(base, IslaObject):
                    raise UnboundAttributeBase(obj_id, attr_id)
                base[attr_id] = value
                return ctx

            case other:
                raise UnknownNodeKind(other, "assign")

    # ---------------------------------------------------------------
    # Resolution
    # ---------------------------------------------------------------

    def _lookup(self, ref: Reference, env: Environment) -> Any:
        """One step of dereferencing; an unbound target is an error."""
        if ref.is_attribute:
            obj_id, attr_id = ref.path
            val = self._read_attribute(env, obj_id, attr_id)
        else:
            val = env.ctx.get(ref.path)
        if val is None:
            raise UnboundVariable(ref.render())
        return val

    def deref(self, thing: Any, env: Environment) -> Any:
        """Follows a chain of references to the stored binding, without copying."""
        seen: List[str] = []
        while isinstance(thing, Reference):
            name = thing.render()
            if name in seen:
                raise CircularReference(seen + [name])
            seen.append(name)
            thing = self._lookup(thing, env)
        return thing

    def resolve(self, thing: Any, env: Environment) -> Any:
        """Replaces every reference in `thing` with its concrete referent.

        Objects are resolved in place, except for their metadata. Lists are
        copied: a new list holds the resolved items and the original is left
        untouched. Built-in functions call this to materialize arguments.
        """
        return self._resolve(thing, env, set())

    def _resolve(self, thing: Any, env: Environment, active: set) -> Any:
        match thing:
            case Reference():
                return self._resolve(self.deref(thing, env), env, active)

            case IslaList():
                # A container reachable from itself is left as is on re-entry.
                if id(thing) in active:
                    return thing
                active.add(id(thing))
                resolved = IslaList()
                resolved.meta.update(thing.meta)
                for item in thing.items():
                    resolved.add(self._resolve(item, env, active))
                active.discard(id(thing))
                return resolved

            case IslaObject():
                if id(thing) in active:
                    return thing
                active.add(id(thing))
                for key in list(thing.keys()):
                    thing[key] = self._resolve(thing[key], env, active)
                active.discard(id(thing))
                return thing

            case _:
                return thing

    # ---------------------------------------------------------------
    # Sequencing and types
    # ---------------------------------------------------------------

    def run_sequence(self, nodes, env: Environment) -> Environment:
        """Evaluates statements left to right, clearing `ret` before each."""
        for node in nodes:
            self.current_node = node
            env.ret = None
            env = self.interpret_ast(node, env)
        return env

    def instantiate_type(self, constructor: Callable[[], Any], type_name: str) -> Any:
        value = constructor()
        value.meta["type"] = type_name
        return value


def resolve(thing: Any, env: Environment) -> Any:
    """Module-level entry point for built-ins that need a materialized value."""
    return Evaluator().resolve(thing, env)
