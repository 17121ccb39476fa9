"""
Steps for rewriting references to theme stylesheets in HTML to the files the
build actually produces.
"""
import re
from pathlib import Path

from .simple import BaseStandardStep


THEME_REFERENCE = re.compile(r'assets/s?css/theme/(.*?)\.s?css')


def rewrite_theme_references(content: str, purge: bool) -> str:
    """
    Point every `assets/css/theme/*.css` or `assets/scss/theme/*.scss`
    reference in @content at the compiled `.min.css`, or at `.purge.css` when
    @purge is set.
    """
    suffix = '.purge.css' if purge else '.min.css'
    return THEME_REFERENCE.sub(lambda m: f'assets/css/theme/{m.group(1)}{suffix}', content)


class ThemeRewriteStep(BaseStandardStep):
    """
    A Step copying HTML while rewriting its theme stylesheet references.
    """
    def __init__(self, purge: bool = False):
        self.purge = purge

    def __call__(self, path: Path, output_paths: list[Path]):
        data = rewrite_theme_references(self.read_text(path), self.purge)
        self.write_outputs(data, output_paths)
