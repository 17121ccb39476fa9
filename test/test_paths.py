from __future__ import annotations

import warnings
from pathlib import Path

import pytest

from sprat.config import DEFAULT_CONFIG, BuildConfig
from sprat.core import BuildOptions, BuildSettings, Context
from sprat.paths import DirPathCalc, GlobMatcher, OutputDirPathCalc
from sprat.scss import theme_css_path


INPUT_PATH = Path('input')
OUTPUT_PATH = Path('output')
EXTERNAL_PATH = Path('external')


@pytest.fixture
def dummy_context():
    return Context(
        BuildSettings(
            input_dir=INPUT_PATH,
            output_dir=OUTPUT_PATH,
        ),
        BuildConfig.from_dict(DEFAULT_CONFIG),
        BuildOptions.create(),
    )


@pytest.mark.parametrize('config,input,expected', [
    (('output_dir',), INPUT_PATH / 'foo.txt', OUTPUT_PATH / 'foo.txt'),
    ((OUTPUT_PATH,), INPUT_PATH / 'foo.txt', OUTPUT_PATH / 'foo.txt'),
    ((EXTERNAL_PATH,), INPUT_PATH / 'a' / 'foo.txt', EXTERNAL_PATH / 'a' / 'foo.txt'),
    (('output_dir', '.css'), INPUT_PATH / 'foo.scss', OUTPUT_PATH / 'foo.css'),
    (('output_dir', '.css'), INPUT_PATH / 'foo.min.scss', OUTPUT_PATH / 'foo.min.css'),
])
def test_dir_path_calc(config: tuple, input: Path, expected: Path, dummy_context: Context):
    calc = DirPathCalc(*config)
    assert calc(dummy_context, input, True) == expected


@pytest.mark.parametrize('config,input,expected', [
    ((), INPUT_PATH / 'foo.txt', OUTPUT_PATH / 'foo.txt'),
    ((), INPUT_PATH / 'assets' / 'js' / 'app.js', OUTPUT_PATH / 'assets' / 'js' / 'app.js'),
    (('.html',), INPUT_PATH / 'foo.txt', OUTPUT_PATH / 'foo.html'),
    ((None, lambda p: p.with_stem(p.stem * 2)), INPUT_PATH / 'foo.txt', OUTPUT_PATH / 'foofoo.txt'),
])
def test_output_dir_path_calc(config: tuple, input: Path, expected: Path, dummy_context: Context):
    calc = OutputDirPathCalc(*config)
    assert calc(dummy_context, input, True) == expected


@pytest.mark.parametrize('input,expected', [
    (INPUT_PATH / 'assets' / 'scss' / 'theme' / 'main.scss', OUTPUT_PATH / 'assets' / 'css' / 'theme' / 'main.min.css'),
    (INPUT_PATH / 'assets' / 'scss' / 'theme' / 'dark.mode.scss', OUTPUT_PATH / 'assets' / 'css' / 'theme' / 'dark.mode.min.css'),
])
def test_theme_path_calc(input: Path, expected: Path, dummy_context: Context):
    calc = OutputDirPathCalc(transform=theme_css_path)
    assert calc(dummy_context, input, True) == expected


@pytest.mark.parametrize('patterns,dot,input,expected', [
    (['**/*.css'], False, INPUT_PATH / 'a.css', True),
    (['**/*.css'], False, INPUT_PATH / 'x' / 'y' / 'a.css', True),
    (['**/*.css'], False, INPUT_PATH / 'a.js', False),
    (['**/*.css'], False, INPUT_PATH / 'a.CSS', False),
    (['**/*.css'], False, INPUT_PATH / '.hidden' / 'a.css', False),
    (['**/*.css'], True, INPUT_PATH / '.hidden' / 'a.css', True),
    (['**/*.css'], False, OUTPUT_PATH / 'a.css', False),
    (['favicon.ico'], True, INPUT_PATH / 'favicon.ico', True),
    (['favicon.ico'], True, INPUT_PATH / 'assets' / 'favicon.ico', False),
    (['assets/css/**/*.css', '!assets/css/**/skip.css'], False, INPUT_PATH / 'assets' / 'css' / 'keep.css', True),
    (['assets/css/**/*.css', '!assets/css/**/skip.css'], False, INPUT_PATH / 'assets' / 'css' / 'skip.css', False),
    (['assets/css/**/*.css', '!assets/css/**/skip.css'], False, INPUT_PATH / 'assets' / 'css' / 'deep' / 'skip.css', False),
    (['assets/js/**/*.js', '!assets/js/vendor/**'], False, INPUT_PATH / 'assets' / 'js' / 'vendor' / 'a' / 'b.js', False),
    (['assets/js/**/*.js', '!assets/js/vendor/**'], False, INPUT_PATH / 'assets' / 'js' / 'other' / 'vendor' / 'b.js', True),
    (['assets/scss/theme/*.scss', '!assets/scss/theme/_*.scss'], False, INPUT_PATH / 'assets' / 'scss' / 'theme' / '_vars.scss', False),
    (['assets/scss/theme/*.scss', '!assets/scss/theme/_*.scss'], False, INPUT_PATH / 'assets' / 'scss' / 'theme' / 'main.scss', True),
    (['assets/scss/theme/*.scss'], False, INPUT_PATH / 'assets' / 'scss' / 'theme' / 'nested' / 'main.scss', False),
])
def test_glob_matcher(patterns: list[str], dot: bool, input: Path, expected: bool, dummy_context: Context):
    matcher = GlobMatcher(patterns, dot=dot)
    assert bool(matcher(dummy_context, input)) is expected


def test_glob_matcher_output_dir(dummy_context: Context):
    matcher = GlobMatcher(['**/*.html'], parent_dir='output_dir')
    assert matcher(dummy_context, OUTPUT_PATH / 'blog' / 'index.html')
    assert not matcher(dummy_context, INPUT_PATH / 'blog' / 'index.html')


def test_glob_matcher_no_deprecation_warning():
    with warnings.catch_warnings():
        warnings.simplefilter('error', DeprecationWarning)
        matcher = GlobMatcher(['assets/js/**/*.js', '!assets/js/vendor/**'])
    assert matcher.spec.match_file('assets/js/app.js')
    assert not matcher.spec.match_file('assets/js/vendor/lib.js')


def test_match_files_sorted(tmp_path: Path):
    input_dir = tmp_path / 'input'
    for name in ['b.css', 'a.css', 'c/a.css', 'a.js']:
        (input_dir / name).parent.mkdir(parents=True, exist_ok=True)
        (input_dir / name).touch()
    context = Context(
        BuildSettings(input_dir=input_dir, output_dir=tmp_path / 'output'),
        BuildConfig.from_dict(DEFAULT_CONFIG),
        BuildOptions.create(),
    )
    matches = context.match_files(GlobMatcher(['**/*.css']))
    assert [p.relative_to(input_dir).as_posix() for p, _ in matches] == ['a.css', 'b.css', 'c/a.css']
    assert context.match_files(GlobMatcher(['**/*.css'])) == matches
