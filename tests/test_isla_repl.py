import importlib.util
import sys
from pathlib import Path
import uuid
import pytest

from isla.isla_runtime import ScriptRunner


def _load_repl_module():
    """Dynamically load the top-level isla.py (REPL) as a module with a unique name."""
    repl_path = Path(__file__).resolve().parents[1] / "isla.py"
    mod_name = f"isla_repl_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(repl_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


def _leaf(tag, text):
    return {'tag': tag, 'text': text, 'line': 1, 'col': 1}

def _node(tag, *children):
    return {'tag': tag, 'text': '', 'line': 1, 'col': 1, 'children': list(children)}

def _scalar(name):
    return _node('scalar', _leaf('identifier', name))


class OneLineParser:
    """Understands `NAME is NUMBER`, `write NAME` and `count NAME`."""
    def parse(self, source):
        words = source.split()
        if len(words) == 3 and words[1] == 'is' and words[2].isdigit():
            stmt = _node('value_assignment', _node('assignee', _scalar(words[0])),
                         _node('value', _node('literal', _leaf('integer', words[2]))))
        elif len(words) == 2:
            stmt = _node('invocation', _leaf('identifier', words[0]),
                         _node('value', _node('variable', _scalar(words[1]))))
        else:
            return {'status': 'error', 'error_message': f"Unexpected input '{source}'",
                    'error_node': {'line': 1, 'col': 1}}
        return {'status': 'success', 'ast': _node('root', _node('expression', stmt))}


@pytest.fixture(autouse=True)
def fake_parser(monkeypatch):
    monkeypatch.setattr(ScriptRunner, "_parser", OneLineParser())


def _feed(monkeypatch, repl, lines):
    it = iter(lines)

    def fake_input(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError
    monkeypatch.setattr("builtins.input", fake_input)
    monkeypatch.setattr(sys, "argv", ["isla.py"])


def test_repl_exit_immediately(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["exit"])
    repl.main()
    out = capsys.readouterr().out
    assert "Isla REPL v0.1" in out
    assert "Type 'exit' or press Ctrl+D to quit." in out


def test_repl_prints_side_effects_and_values(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["x is 42", "write x", "count write", "exit"])
    repl.main()
    out, err = capsys.readouterr()
    assert "\n42\n" in out
    assert "WrongArgument: count expects" in err


def test_repl_bindings_persist_between_lines(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["x is 1", "x is 2", "write x", "exit"])
    repl.main()
    out = capsys.readouterr().out
    assert "\n2\n" in out


def test_repl_errors_print_to_stderr(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, ["write ghost", "exit"])
    repl.main()
    out, err = capsys.readouterr()
    assert "Isla REPL v0.1" in out
    assert "UnboundVariable: I do not know of anything called ghost." in err


def test_repl_eof_quits(monkeypatch, capsys):
    repl = _load_repl_module()
    _feed(monkeypatch, repl, [])
    repl.main()
    assert "Exiting." in capsys.readouterr().out


def test_run_script_file(tmp_path, capsys):
    repl = _load_repl_module()
    script = tmp_path / "prog.isla"
    script.write_text("x is 7\n", encoding="utf-8")
    repl.run_script_file(str(script))
    assert capsys.readouterr().err == ""


def test_run_script_file_missing(tmp_path, capsys):
    repl = _load_repl_module()
    with pytest.raises(SystemExit) as info:
        repl.run_script_file(str(tmp_path / "nope.isla"))
    assert info.value.code == 1
    assert "file not found" in capsys.readouterr().err


def test_run_script_file_error_exits(tmp_path, capsys):
    repl = _load_repl_module()
    script = tmp_path / "bad.isla"
    script.write_text("write ghost", encoding="utf-8")
    with pytest.raises(SystemExit) as info:
        repl.run_script_file(str(script))
    assert info.value.code == 1
    assert "ghost" in capsys.readouterr().err
