"""
sprat builds a static site's source tree into a deployable directory:
copying fonts and images, minifying or beautifying CSS and JavaScript,
compiling SCSS themes, and optionally purging unused CSS.
"""
from .config import BuildConfig, DEFAULT_CONFIG, blacklist_patterns, deep_merge, load_config
from .core import (
    BuildError, BuildOptions, BuildSettings, CompileError, ConfigLoadError, Context,
    FilesystemError, Matcher, PathCalc, Rule, Stage, Step, StepUnavailableException,
)
from .dependencies import AllDependency, AnyDependency, Dependency, PipDependency, WebExecDependency
from .js import JSMinifierStep
from .minify import CSSMinifierStep
from .paths import DirPathCalc, GlobMatcher, OutputDirPathCalc
from .pipeline import build_context, build_stages
from .rewrite import ThemeRewriteStep
from .scss import SassStep
from .simple import DirectCopyStep
