"""
A pretty-printer for Isla values.
"""
import collections.abc

from isla.isla_datatypes import IslaObject, IslaList, Reference


class Printer:
    """Formats Isla values into readable text."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, IslaObject): return self._pformat_object
        if isinstance(obj, IslaList): return self._pformat_list
        if isinstance(obj, collections.abc.Mapping): return self._pformat_dict
        if callable(obj): return self._pformat_function
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_primitive,
            float: self._pformat_primitive,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            Reference: self._pformat_reference,
            IslaObject: self._pformat_object,
            IslaList: self._pformat_list,
            list: self._pformat_list,
        }

    def _pformat_primitive(self, obj, level):
        return str(obj)

    def _pformat_str(self, obj, level):
        return f'"{obj}"'

    def _pformat_bool(self, obj, level):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj, level):
        return 'nothing'

    def _pformat_reference(self, obj, level):
        return f"<ref {obj.render()}>"

    def _pformat_function(self, obj, level):
        name = getattr(obj, '__name__', 'function').lstrip('_').replace('_', '-')
        return f"<function {name}>"

    def _pformat_list(self, obj, level):
        items = obj.items() if isinstance(obj, IslaList) else obj
        return "[" + ", ".join(self.pformat(i, level + 1) for i in items) + "]"

    def _pformat_dict(self, obj, level):
        if not obj:
            return "{}"
        indent = self._indent_char * (level + 1)
        lines = [f"{indent}{k}: {self.pformat(v, level + 1)}" for k, v in obj.items()]
        closing = self._indent_char * level
        return "{\n" + "\n".join(lines) + "\n" + closing + "}"

    def _pformat_object(self, obj, level):
        head = self.describe(obj)
        if not len(obj):
            return head
        attrs = " and ".join(f"{k} = {self.pformat(v, level + 1)}" for k, v in obj.items())
        return f"{head} with {attrs}"

    def describe(self, obj) -> str:
        """A short phrase naming what kind of thing a value is."""
        type_name = getattr(obj, "meta", {}).get("type") if isinstance(obj, (IslaObject, IslaList)) else None
        if type_name is None:
            match obj:
                case IslaList():
                    type_name = "list"
                case IslaObject():
                    type_name = "thing"
                case bool():
                    return "a truth value"
                case int() | float():
                    return "a number"
                case str():
                    return "some text"
                case None:
                    return "nothing"
                case Reference():
                    return f"a reference to {obj.render()}"
                case _:
                    return f"a {type(obj).__name__}"
        article = "an" if type_name[:1].lower() in "aeiou" else "a"
        return f"{article} {type_name}"
