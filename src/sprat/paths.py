"""
Practical implementations of Matchers and PathCalcs.
"""
from __future__ import annotations

import typing as t
from pathlib import Path

import pathspec

from .core import CONTEXT_DIR_KEYS, Context, ContextDir, Matcher, PathCalc

if t.TYPE_CHECKING:
    from collections.abc import Sequence


T = t.TypeVar('T')


def _anchor(pattern: str):
    """
    Root a glob pattern at the matched directory, so that `favicon.ico` means
    the top-level file rather than one at any depth.
    """
    if pattern.startswith('!'):
        return '!/' + pattern[1:].lstrip('/')
    return '/' + pattern.lstrip('/')


class GlobMatcher(Matcher[bool]):
    """
    Path Matcher using gitignore-style glob patterns relative to
    @parent_dir. Patterns starting with `!` exclude, and the last matching
    pattern decides, so a positive pattern followed by negated ones selects
    everything except the negated matches. Matching is case-sensitive. Paths
    with a hidden (dot-prefixed) segment are rejected unless @dot is set.
    """
    def __init__(self,
                 patterns: Sequence[str],
                 dot: bool = False,
                 parent_dir: ContextDir = 'input_dir'):
        self.patterns = list(patterns)
        self.dot = dot
        self.parent_dir: ContextDir = parent_dir
        self.spec = pathspec.PathSpec.from_lines('gitignore', [_anchor(p) for p in self.patterns])

    def __repr__(self):
        return f'{self.__class__.__name__}({self.patterns!r}, dot={self.dot})'

    def __call__(self, context: Context, path: Path) -> bool:
        parent = context[self.parent_dir]
        if not path.is_relative_to(parent):
            return False
        relative = path.relative_to(parent)
        if not self.dot and any(part.startswith('.') for part in relative.parts):
            return False
        return self.spec.match_file(relative.as_posix())


def _to_dir_inner(dest: Path,
                  ext: str | None,
                  context: Context,
                  path: Path,
                  transform: t.Callable[[Path], Path] | None = None):
    rel = path.relative_to(context['input_dir'])
    if transform:
        rel = transform(rel)
    new_path = dest / rel

    if ext is not None:
        new_path = new_path.with_suffix(ext)

    return new_path


class DirPathCalc(PathCalc[T]):
    """
    PathCalc which moves input paths from the input directory into a
    specified directory, keeping their relative location. If @ext is
    specified, it will replace the extension of input paths, and
    @transform may rewrite the relative path before it is joined.
    """
    def __init__(self,
                 dest: Path | ContextDir,
                 ext: str | None = None,
                 transform: t.Callable[[Path], Path] | None = None):
        self.dest = dest
        self.ext = ext
        self.transform = transform

    def __call__(self, context: Context, path: Path, match: T) -> Path:
        if self.dest in CONTEXT_DIR_KEYS:
            dest = context[t.cast(ContextDir, self.dest)]
        else:
            dest = Path(self.dest)
        return _to_dir_inner(dest, self.ext, context, path, self.transform)


class OutputDirPathCalc(DirPathCalc[T]):
    """
    PathCalc which makes its input paths children of the Context's output
    directory, mirroring the source layout. @ext and @transform behave as in
    `DirPathCalc`.
    """
    def __init__(self,
                 ext: str | None = None,
                 transform: t.Callable[[Path], Path] | None = None):
        super().__init__('output_dir', ext, transform)
