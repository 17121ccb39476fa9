"""
Compilation of SCSS theme entry points into minified, optionally purged,
stylesheets.
"""
from __future__ import annotations

import re
import typing as t
from collections.abc import Iterable, Mapping
from pathlib import Path

from .clean import THEME_CSS_DIR
from .config import thaw
from .core import CompileError
from .dependencies import PipDependency
from .minify import minify_css
from .paths import GlobMatcher
from .purge import collect_used_tokens, purge_css
from .simple import BaseStandardStep


MIN_SUFFIX = '.min.css'
PURGE_SUFFIX = '.purge.css'
# libsass marks non-ASCII output with @charset (expanded) or a BOM
# (compressed); the build emits neither.
CHARSET_PREFIX = re.compile(r'^(\ufeff|\s*@charset\s+("[^"]*"|\'[^\']*\')\s*;\s*)')

OUTPUT_HTML = GlobMatcher(['**/*.html'], parent_dir='output_dir')


def theme_css_path(rel: Path) -> Path:
    """
    Map a theme entry point such as `assets/scss/theme/main.scss` to its
    compiled location, `assets/css/theme/main.min.css`.
    """
    return THEME_CSS_DIR / f'{rel.stem}{MIN_SUFFIX}'


def purged_path(path: Path) -> Path:
    return path.with_name(path.name.removesuffix(MIN_SUFFIX) + PURGE_SUFFIX)


class SassStep(BaseStandardStep):
    """
    A Step compiling an SCSS entry point with libsass, then minifying or
    beautifying the result like `CSSMinifierStep`. When @purge is set, the
    output is tree-shaken against the HTML already written to the output
    directory and saved as `.purge.css` in place of `.min.css`, so the HTML
    has to be built first.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('libsass', check_name='sass'),
            PipDependency('lightningcss'),
            PipDependency('tinycss2'),
        }

    def __init__(self,
                 sass_options: Mapping[str, t.Any] | None = None,
                 minify: bool = False,
                 purge: bool = False,
                 safelist: Iterable[str] = ()):
        self.sass_options = thaw(sass_options or {})
        self.minify = minify
        self.purge = purge
        self.safelist = frozenset(safelist)

    def compile(self, path: Path) -> str:
        """
        Compile @path to CSS, dropping any charset marker.
        """
        import sass
        options = {'output_style': 'compressed' if self.minify else 'expanded'}
        options.update(self.sass_options)
        try:
            css = sass.compile(filename=str(path), **options)
        except (sass.CompileError, TypeError) as e:
            raise CompileError(path, e) from e
        return CHARSET_PREFIX.sub('', css, count=1)

    def find_output_html(self):
        """
        Every HTML file currently in the output directory.
        """
        output_dir = self.context['output_dir']
        if not output_dir.is_dir():
            return []
        candidates = self.context.find_inputs(output_dir)
        return [path for path, _match in self.context.match_files(OUTPUT_HTML, candidates)]

    def __call__(self, path: Path, output_paths: list[Path]):
        data = minify_css(self.compile(path), self.minify, str(path))
        self.write_outputs(data, output_paths)
        if not self.purge:
            return None

        used = collect_used_tokens(self.find_output_html(), self.encoding)
        try:
            purged = purge_css(data, used, self.safelist)
        except ValueError as e:
            raise CompileError(path, e) from e

        written = []
        for o_path in output_paths:
            p_path = purged_path(o_path)
            p_path.write_text(purged, self.encoding, newline=self.newline)
            o_path.unlink()
            written.append(p_path)
        return written
