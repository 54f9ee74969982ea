"""
Transforms the raw parser AST into the Isla AST node variants.
"""

from isla.isla_datatypes import (
    Root, Block, Expression, ValueAssignment, TypeAssignment, ListAssignment,
    ListOperation, Invocation, Value, Literal, Variable, Scalar, Object, Assignee,
    Integer, String, Identifier,
)


class IslaTransformer:
    def _loc(self, node):
        line = node.get('line'); col = node.get('col')
        if line is not None and col is not None:
            return {'line': line, 'col': col, 'tag': node.get('tag'), 'text': node.get('text')}
        return None

    def _children(self, node):
        children = node.get('children') or []
        if isinstance(children, dict):
            children = list(children.values())
        return [c for c in children if c is not None]

    def _expect(self, node, count):
        children = self._children(node)
        if len(children) != count:
            raise ValueError(
                f"'{node.get('tag')}' expects {count} children, got {len(children)}"
            )
        return [self.transform(c) for c in children]

    def transform(self, node: object) -> object:
        # Parser result wrapper
        if isinstance(node, dict) and 'ast' in node and 'tag' not in node:
            return self.transform(node['ast'])

        if not isinstance(node, dict):
            raise TypeError(f"Cannot transform {type(node).__name__}: {node!r}")

        tag = node.get('tag')
        loc = self._loc(node)

        match tag:
            # Structural containers
            case 'root':
                return Root(tuple(self.transform(c) for c in self._children(node)), loc=loc)
            case 'block':
                return Block(tuple(self.transform(c) for c in self._children(node)), loc=loc)
            case 'expression':
                inner, = self._expect(node, 1)
                return Expression(inner, loc=loc)

            # Statements
            case 'value_assignment':
                assignee, value = self._expect(node, 2)
                return ValueAssignment(assignee, value, loc=loc)
            case 'type_assignment':
                assignee, type_identifier = self._expect(node, 2)
                return TypeAssignment(assignee, type_identifier, loc=loc)
            case 'list_assignment':
                operation, item, assignee = self._expect(node, 3)
                return ListAssignment(operation, item, assignee, loc=loc)
            case 'list_operation':
                # The operation is named by the tag of its single keyword child.
                children = self._children(node)
                if len(children) != 1:
                    raise ValueError("'list_operation' expects exactly one keyword")
                return ListOperation(children[0]['tag'], loc=loc)
            case 'invocation':
                callee, argument = self._expect(node, 2)
                return Invocation(callee, argument, loc=loc)

            # Reads and targets
            case 'value':
                inner, = self._expect(node, 1)
                return Value(inner, loc=loc)
            case 'literal':
                inner, = self._expect(node, 1)
                return Literal(inner, loc=loc)
            case 'variable':
                inner, = self._expect(node, 1)
                return Variable(inner, loc=loc)
            case 'assignee':
                inner, = self._expect(node, 1)
                return Assignee(inner, loc=loc)
            case 'scalar':
                identifier, = self._expect(node, 1)
                return Scalar(identifier, loc=loc)
            case 'object':
                obj, attr = self._expect(node, 2)
                return Object(obj, attr, loc=loc)

            # Atomics
            case 'integer':
                # Exact ints from the source text, never via float.
                txt = node.get('text')
                if isinstance(txt, str):
                    return Integer(int(txt), loc=loc)
                return Integer(int(node['value']), loc=loc)
            case 'string':
                txt = node['text']
                if len(txt) >= 2 and txt[0] == txt[-1] and txt[0] in ('"', "'"):
                    txt = txt[1:-1]
                return String(txt, loc=loc)
            case 'identifier':
                return Identifier(node['text'], loc=loc)

            case _:
                raise NotImplementedError(f"No transformer for tag '{tag}'")
