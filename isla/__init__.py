"""Isla: a small imperative scripting language for children."""
from isla.isla_interpreter import Evaluator, resolve
from isla.isla_runtime import ScriptRunner, interpret

__all__ = ["Evaluator", "ScriptRunner", "interpret", "resolve"]
