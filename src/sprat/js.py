"""
JavaScript minification and beautification, using the terser CLI when it is
installed and calmjs.parse/jsbeautifier otherwise.
"""
from __future__ import annotations

import shutil
import subprocess
import typing as t
from pathlib import Path

from .core import CompileError, StepUnavailableException
from .dependencies import PipDependency, WebExecDependency
from .simple import BaseStandardStep

if t.TYPE_CHECKING:
    from .core import Context


JSBackend = t.Literal['terser', 'calmjs']

PREMINIFIED_SUFFIX = '.min.js'

TERSER_MINIFY_OPTIONS = [
    '--compress',
    'drop_console=true,drop_debugger=true,pure_funcs=[console.log,console.info,console.debug]',
    # Work around Safari 10 loop-scoping bugs in mangled names.
    '--mangle', 'safari10=true',
    '--format', 'comments=false',
]
TERSER_BEAUTIFY_OPTIONS = [
    '--format', 'beautify=true,comments=all,indent_level=2',
]


def _is_console_call(node) -> bool:
    from calmjs.parse import asttypes
    if not isinstance(node, asttypes.FunctionCall):
        return False
    target = node.identifier
    if not isinstance(target, asttypes.DotAccessor):
        return False
    while isinstance(target, asttypes.DotAccessor):
        target = target.node
    return isinstance(target, asttypes.Identifier) and target.value == 'console'


def _void(statement: bool):
    from calmjs.parse import es5
    # Parenthesized, so a dropped call used as `console.log(x).y` stays valid.
    node = es5('(void 0);').children()[0]
    return node if statement else node.expr


def _drop(node):
    from calmjs.parse import asttypes
    if isinstance(node, asttypes.Debugger):
        return _void(statement=True)
    if _is_console_call(node):
        return _void(statement=False)
    return drop_debug_statements(node)


def drop_debug_statements(node):
    """
    Replace every `console.*(...)` call and `debugger` statement in the
    parsed tree below @node with `void 0`, in place. Returns @node.
    """
    from calmjs.parse import asttypes
    for name, value in list(vars(node).items()):
        if isinstance(value, asttypes.Node):
            setattr(node, name, _drop(value))
        elif isinstance(value, list):
            setattr(node, name, [_drop(v) if isinstance(v, asttypes.Node) else v for v in value])
    return node


class JSMinifierStep(BaseStandardStep):
    """
    A JavaScript Step with three behaviors: files already named `*.min.js`
    are copied untouched; otherwise code is minified (console and debugger
    statements dropped, comments stripped, local identifiers mangled) when
    @minify is set, or beautified with comments kept when it is not.

    @backend picks `'terser'` or `'calmjs'` explicitly; by default terser is
    used whenever it is on PATH. The calmjs backend only parses ES5.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            (
                WebExecDependency('terser', 'npm install --global terser')
                | (PipDependency('calmjs.parse') & PipDependency('jsbeautifier'))
            ),
        }

    def __init__(self, minify: bool = False, backend: JSBackend | None = None):
        self.minify = minify
        self.backend = backend

    def bind(self, context: Context):
        super().bind(context)
        if self.backend is None:
            self.backend = 'terser' if shutil.which('terser') else 'calmjs'
        if self.backend == 'terser' and not shutil.which('terser'):
            raise StepUnavailableException(self)

    def run_terser(self, path: Path, output_path: Path):
        options = TERSER_MINIFY_OPTIONS if self.minify else TERSER_BEAUTIFY_OPTIONS
        command = [t.cast(str, shutil.which('terser')), str(path), *options, '--output', str(output_path)]
        try:
            subprocess.run(command, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            raise CompileError(path, e.stderr.strip() or e) from e

    def minify_code(self, code: str) -> str:
        from calmjs.parse import es5
        from calmjs.parse.exceptions import ECMASyntaxError
        from calmjs.parse.unparsers.es5 import minify_print
        try:
            program = es5(code)
        except ECMASyntaxError as e:
            raise ValueError(str(e)) from e
        return minify_print(drop_debug_statements(program), obfuscate=True, obfuscate_globals=False)

    def beautify_code(self, code: str) -> str:
        import jsbeautifier
        options = jsbeautifier.default_options()
        options.indent_size = 2
        return jsbeautifier.beautify(code, options)

    def __call__(self, path: Path, output_paths: list[Path]):
        if path.name.endswith(PREMINIFIED_SUFFIX):
            self.ensure_output_dirs(output_paths)
            for o_path in output_paths:
                shutil.copyfile(path, o_path)
            return

        if self.backend == 'terser':
            with self.ensure_outputs(output_paths):
                self.run_terser(path, output_paths[0])
            return

        code = self.read_text(path)
        try:
            data = self.minify_code(code) if self.minify else self.beautify_code(code)
        except ValueError as e:
            raise CompileError(path, e) from e
        self.write_outputs(data, output_paths)
