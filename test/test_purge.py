import pytest

from sprat.purge import extract_tokens, purge_css


HTML = '''
<html dir="ltr">
<body class="page sm:hstack">
  <header id="top" class="site-header"><a class="nav-link" href="/about">About</a></header>
  <div data-role="banner-main"></div>
</body>
</html>
'''


@pytest.fixture(scope='module')
def used():
    return extract_tokens(HTML)


@pytest.mark.parametrize('content,expected', [
    ('class="a b-c"', {'class', 'a', 'b-c'}),
    ('sm:hstack xl:btn-xl', {'sm:hstack', 'xl:btn-xl'}),
    ('href="/about/team"', {'href', '/about/team'}),
    ('label: value', {'label', 'value'}),
    ('a::b', {'a::b'}),
    ('café', {'caf'}),
])
def test_extract_tokens(content: str, expected: set[str]):
    assert extract_tokens(content) == expected


def test_purge_keeps_used_rules(used: set[str]):
    code = '.site-header{color:red}.unused{color:blue}#top{margin:0}#gone{margin:1px}'
    assert purge_css(code, used) == '.site-header{color:red}#top{margin:0}'


def test_purge_compound_selectors(used: set[str]):
    code = '.site-header .nav-link:hover{color:red}.site-header .missing{color:blue}a.nav-link::after{content:""}'
    assert purge_css(code, used) == '.site-header .nav-link:hover{color:red}a.nav-link::after{content:""}'


def test_purge_selector_lists(used: set[str]):
    code = '.missing, .page, .other {color: red}\n.x, .y {color: blue}\n'
    assert purge_css(code, used) == '.page {color: red}\n'


def test_purge_type_selectors(used: set[str]):
    code = 'body{margin:0}table{border:0}*{box-sizing:border-box}'
    assert purge_css(code, used) == 'body{margin:0}*{box-sizing:border-box}'


def test_purge_escaped_class(used: set[str]):
    assert purge_css(r'.sm\:hstack{display:flex}', used) == r'.sm\:hstack{display:flex}'


def test_purge_safelist(used: set[str]):
    code = '.uc-open{display:block}.uc-closed{display:none}[dir=rtl] .page{float:right}'
    assert purge_css(code, used, ['uc-open', '[dir=rtl]']) == '.uc-open{display:block}[dir=rtl] .page{float:right}'


@pytest.mark.parametrize('selector,kept', [
    ('[dir=ltr]', True),
    ('[dir="ltr"]', True),
    ('[dir=rtl]', False),
    ('[data-role^=banner]', True),
    ('[data-role$=main]', True),
    ('[data-role*=ner-m]', True),
    ('[data-role^=footer]', False),
    ('[href]', True),
    ('[title]', False),
])
def test_purge_attribute_selectors(selector: str, kept: bool, used: set[str]):
    code = f'{selector}{{color:red}}'
    assert purge_css(code, used) == (code if kept else '')


def test_purge_media_queries(used: set[str]):
    code = (
        '@media (max-width:600px){.page{padding:0}.unused{padding:1px}}'
        '@media print{.unused{display:none}}'
        '@font-face{font-family:x;src:url(x.woff2)}'
        '@keyframes spin{from{opacity:0}to{opacity:1}}'
    )
    assert purge_css(code, used) == (
        '@media (max-width:600px){.page{padding:0}}'
        '@font-face{font-family:x;src:url(x.woff2)}'
        '@keyframes spin{from{opacity:0}to{opacity:1}}'
    )


def test_purge_keeps_comments(used: set[str]):
    code = '/*! license */\n.page{color:red}\n'
    assert purge_css(code, used) == code


def test_purge_everything(used: set[str]):
    assert purge_css('.x{color:red}\n.y{color:blue}\n', used) == ''
