from pathlib import Path

import pytest

from sprat.config import DEFAULT_CONFIG, BuildConfig
from sprat.core import BuildOptions, BuildSettings, CompileError, Context
from sprat.minify import CSSMinifierStep, minify_css
from sprat.scss import CHARSET_PREFIX, SassStep, purged_path, theme_css_path


@pytest.fixture
def context(tmp_path: Path):
    return Context(
        BuildSettings(input_dir=tmp_path / 'input', output_dir=tmp_path / 'output'),
        BuildConfig.from_dict(DEFAULT_CONFIG),
        BuildOptions.create(),
    )


def write_file(root: Path, name: str, content: str):
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    return path


def test_minify_css():
    code = '.a {\n  color: #ff0000;\n  margin: 0px 0px 0px 0px;\n}\n\n.b { color: blue }\n'
    result = minify_css(code, True)
    assert '\n' not in result.strip()
    assert ' {' not in result
    assert len(result) < len(code)


def test_beautify_css():
    result = minify_css('.a{color:red}.b{color:blue}', False)
    assert result.count('\n') >= 4
    assert '.a {' in result


def test_minify_css_error():
    with pytest.raises(CompileError):
        minify_css('.a..b{color:red}', True, 'broken.css')


def test_css_minifier_step(context: Context):
    source = write_file(context['input_dir'], 'assets/css/base.css', 'body {\n  margin: 0;\n}\n')
    target = context['output_dir'] / 'assets' / 'css' / 'base.css'
    step = CSSMinifierStep(minify=True)
    step.bind(context)
    step(source, [target])
    assert target.read_text().strip() == 'body{margin:0}'


@pytest.mark.parametrize('css,expected', [
    ('@charset "UTF-8";\n.a{content:"é"}', '.a{content:"é"}'),
    ("@charset 'UTF-8';.a{}", '.a{}'),
    ('\ufeff.a{content:"é"}', '.a{content:"é"}'),
    ('.a{content:"@charset"}', '.a{content:"@charset"}'),
])
def test_charset_prefix(css: str, expected: str):
    assert CHARSET_PREFIX.sub('', css, count=1) == expected


def test_theme_paths():
    assert theme_css_path(Path('assets/scss/theme/main.scss')) == Path('assets/css/theme/main.min.css')
    assert purged_path(Path('dist/assets/css/theme/main.min.css')) == Path('dist/assets/css/theme/main.purge.css')


def test_sass_step(context: Context):
    write_file(context['input_dir'], 'assets/scss/theme/_variables.scss', '$brand: #112233;\n')
    source = write_file(
        context['input_dir'],
        'assets/scss/theme/main.scss',
        '@import "variables";\n.card {\n  .title { color: $brand; }\n  &:hover { content: "é"; }\n}\n'
    )
    target = context['output_dir'] / 'assets' / 'css' / 'theme' / 'main.min.css'
    step = SassStep({'include_paths': ('node_modules',)}, minify=True)
    step.bind(context)
    assert step(source, [target]) is None

    result = target.read_text(encoding='utf-8')
    assert '.card .title{color:#123}' in result
    assert '.card:hover' in result
    assert '$brand' not in result
    assert '@charset' not in result
    assert not result.startswith('\ufeff')


def test_sass_step_error(context: Context):
    source = write_file(context['input_dir'], 'assets/scss/theme/main.scss', '.card { color: $missing; }\n')
    step = SassStep(minify=True)
    step.bind(context)
    with pytest.raises(CompileError) as exc_info:
        step(source, [context['output_dir'] / 'main.min.css'])
    assert exc_info.value.path == source


def test_sass_step_purge(context: Context):
    write_file(context['output_dir'], 'index.html', '<div class="card"><h1 class="title">Hi</h1></div>')
    write_file(context['output_dir'], 'blog/post.html', '<p class="note">Post</p>')
    write_file(context['input_dir'], 'index.html', '<p class="from-source">Not built</p>')
    source = write_file(
        context['input_dir'],
        'assets/scss/theme/main.scss',
        '.card { padding: 1px; }\n.note { margin: 1px; }\n.unused { margin: 2px; }\n'
        '.from-source { margin: 3px; }\n.uc-open { display: block; }\n'
    )
    target = context['output_dir'] / 'assets' / 'css' / 'theme' / 'main.min.css'
    step = SassStep(minify=True, purge=True, safelist=['uc-open'])
    step.bind(context)
    written = step(source, [target])

    purged = target.with_name('main.purge.css')
    assert written == [purged]
    assert not target.exists()
    result = purged.read_text()
    assert '.card' in result
    assert '.note' in result
    assert '.uc-open' in result
    assert '.unused' not in result
    assert '.from-source' not in result
