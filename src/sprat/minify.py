"""
CSS minification and beautification using lightningcss.
"""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .core import CompileError
from .dependencies import PipDependency
from .simple import BaseStandardStep


# The oldest renderer the output has to keep working in.
CSS_BROWSERS = ('ie 9',)


def minify_css(code: str,
               minify: bool,
               filename: str = '',
               browsers_list: Sequence[str] = CSS_BROWSERS) -> str:
    """
    Run @code through lightningcss, producing minified output when @minify is
    set and pretty-printed output otherwise. Raises `CompileError` if the
    stylesheet cannot be parsed.
    """
    import lightningcss
    try:
        return lightningcss.process_stylesheet(
            code,
            filename=filename,
            error_recovery=False,
            parser_flags=lightningcss.calc_parser_flags(),
            unused_symbols=None,
            browsers_list=list(browsers_list),
            minify=minify
        )
    except ValueError as e:
        raise CompileError(Path(filename), e) from e


class CSSMinifierStep(BaseStandardStep):
    """
    A CSS Step which either minifies (merging and shortening rules) or
    beautifies stylesheets, targeting IE9-class browsers so that no newer
    syntax is introduced.
    """
    @classmethod
    def get_dependencies(cls):
        return {
            PipDependency('lightningcss'),
        }

    def __init__(self, minify: bool = False, browsers_list: Sequence[str] = CSS_BROWSERS):
        self.minify = minify
        self.browsers_list = list(browsers_list)

    def __call__(self, path: Path, output_paths: list[Path]):
        data = minify_css(self.read_text(path), self.minify, str(path), self.browsers_list)
        self.write_outputs(data, output_paths)
