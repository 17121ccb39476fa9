"""
The standard site build: which files each Stage picks up from the source
tree and which Step handles them.
"""
from __future__ import annotations

from .config import BuildConfig, blacklist_patterns
from .core import BuildOptions, BuildSettings, Context, Rule, Stage
from .js import JSMinifierStep
from .minify import CSSMinifierStep
from .paths import GlobMatcher, OutputDirPathCalc
from .rewrite import ThemeRewriteStep
from .scss import SassStep, theme_css_path
from .simple import DirectCopyStep


IMAGES_DIR = 'assets/images'


def asset_matcher(asset_class: str, pattern: str, config: BuildConfig, dot: bool = False):
    """
    A GlobMatcher for @pattern under `assets/<asset_class>`, minus that
    class's blacklist.
    """
    return GlobMatcher(
        [f'assets/{asset_class}/{pattern}', *blacklist_patterns(asset_class, config)],
        dot=dot
    )


def build_stages(config: BuildConfig, options: BuildOptions) -> list[Stage]:
    """
    Create the four independent Stages of a build. HTML is processed before
    Sass inside one Stage, since purging reads the built HTML.
    """
    asset_rules = [
        Rule(asset_matcher('fonts', '**/*', config, dot=True), OutputDirPathCalc(), DirectCopyStep()),
        Rule(GlobMatcher(['favicon.ico'], dot=True), OutputDirPathCalc(), DirectCopyStep()),
    ]
    asset_notes = []
    if options.skip_images:
        asset_notes.append('Skipping images as requested')
    else:
        asset_rules.append(Rule(
            asset_matcher('images', '**/*', config, dot=True),
            OutputDirPathCalc(),
            DirectCopyStep(),
            requires=IMAGES_DIR
        ))

    mode = 'minified' if options.minify else 'beautified'
    return [
        Stage('Copying static assets (fonts, images, favicon)...', asset_rules, asset_notes),
        Stage('Processing CSS files...', [
            Rule(asset_matcher('css', '**/*.css', config), OutputDirPathCalc(), CSSMinifierStep(options.minify)),
        ]),
        Stage(f'Processing JavaScript files ({mode})...', [
            Rule(asset_matcher('js', '**/*.js', config), OutputDirPathCalc(), JSMinifierStep(options.minify)),
            Rule(asset_matcher('js', '**/*.css', config), OutputDirPathCalc(), CSSMinifierStep(options.minify)),
        ]),
        Stage(f'Processing HTML files, then compiling SCSS ({mode})...', [
            Rule(GlobMatcher(['**/*.html']), OutputDirPathCalc(), ThemeRewriteStep(options.purge_css)),
            Rule(
                GlobMatcher(['assets/scss/theme/*.scss', '!assets/scss/theme/_*.scss']),
                OutputDirPathCalc(transform=theme_css_path),
                SassStep(config.sass_options, options.minify, options.purge_css, config.purge_css_safelist)
            ),
        ]),
    ]


def build_context(settings: BuildSettings, config: BuildConfig, options: BuildOptions) -> Context:
    """
    Create a Context for the standard site build. A clean-only build gets no
    Stages, so it does not require any compiler to be installed.
    """
    stages = [] if options.clean_only else build_stages(config, options)
    return Context(settings, config, options, stages)
