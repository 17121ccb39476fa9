"""
Build configuration: the compiled-in defaults, an optional TOML override
file, and the merge policy between them.

The override file mirrors the shape of `DEFAULT_CONFIG`:

    [assets_blacklist.js]
    files = ["analytics.js"]
    folders = ["vendor/legacy/**"]

    purge_css_safelist = ["is-open"]

    [sass_options]
    precision = 8

Lists are appended to the defaults rather than replacing them, tables are
merged key by key, and any other value replaces the default.
"""
from __future__ import annotations

import sys
import types
import typing as t
from collections.abc import Mapping
from pathlib import Path

from .core import ConfigLoadError
from .pretty_utils import print_with_style

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib


ASSET_CLASSES = ('css', 'js', 'images', 'fonts')
DEFAULT_CONFIG_FILE = Path('build.config.toml')


class AssetBlacklist(t.TypedDict):
    """
    Files (matched by name at any depth) and folder globs (relative to the
    asset class's root) to leave out of one asset class.
    """
    files: list[str]
    folders: list[str]


class InputBuildConfig(t.TypedDict, total=False):
    """
    TypedDict for the contents of a configuration file. Every key is
    optional.
    """
    assets_blacklist: dict[str, AssetBlacklist]
    purge_css_safelist: list[str]
    sass_options: dict[str, t.Any]


DEFAULT_CONFIG = InputBuildConfig(
    assets_blacklist={
        'css': {
            'files': ['magic-cursor.css'],
            'folders': [],
        },
        'js': {
            'files': [
                'app-head.js',
                'uikit-components.js',
                'uni-core-icons.min.js',
                'uni-core.min.js',
                'anime-helper-defined-timelines.js',
                'dynamic-background.js',
                'imgtrigger.js',
            ],
            'folders': [
                'uni-core/css/components/**',
                'uni-core/js/components/**',
            ],
        },
        'images': {
            'files': [],
            'folders': [],
        },
        'fonts': {
            'files': [],
            'folders': [],
        },
    },
    purge_css_safelist=[
        'bp-xs', 'bp-sm', 'bp-md', 'bp-lg', 'bp-xl', 'bp-xxl',
        'dom-ready', 'page-preload', 'loaded', 'page-revealer', 'darkmode-trigger',
        'uc-sticky-placeholder', 'header', 'uc-sticky', 'uc-open', 'uc-active',
        'uc-sticky-below', 'uc-sticky-fixed', 'inner', 'nav-desktop', 'wrap',
        'sm:hstack', 'xl:btn-xl', 'uc-svg', 'uc-circle-text', 'uc-circle-text-path',
        'center-icon', 'uni-testimonials', 'image-hover-revealer',
        '[dir=ltr]', '[dir=rtl]',
        'swiper-pagination-clickable', 'swiper-pagination-bullets',
        'swiper-pagination-horizontal', 'swiper-pagination-bullet',
        'swiper-pagination-bullet-active', 'swiper-slide-fully-visible',
        'swiper-watch-progress', 'swiper-initialized', 'swiper-horizontal',
        'swiper-slide-visible', 'swiper-slide-prev', 'swiper-slide-next',
        'swiper-slide-active',
        'uc-accordion', 'uc-switcher', 'uc-grid', 'uc-grid-margin', 'uc-tab', 'uc-tooltip',
    ],
    # node_modules always comes first; user include paths are appended.
    sass_options={
        'include_paths': ['node_modules'],
    },
)


def freeze(value: t.Any) -> t.Any:
    """
    Return a read-only copy of @value, turning dicts into mapping proxies and
    lists into tuples, recursively.
    """
    if isinstance(value, Mapping):
        return types.MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: t.Any) -> t.Any:
    """
    Undo `freeze()`, for handing configuration to libraries expecting plain
    dicts and lists.
    """
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


def deep_merge(base: Mapping[str, t.Any], override: Mapping[str, t.Any]) -> dict[str, t.Any]:
    """
    Merge @override into a copy of @base: mappings merge by key, lists
    concatenate (base first, duplicates kept), and anything else is replaced
    by the override value. Neither argument is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        elif isinstance(current, (list, tuple)) and isinstance(value, (list, tuple)):
            merged[key] = [*current, *value]
        else:
            merged[key] = value
    return merged


def _string_list(value: t.Any, where: str) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigLoadError(f'{where} must be a list of strings')
    return tuple(value)


class BuildConfig(t.NamedTuple):
    """
    The merged, read-only configuration shared by every Stage of a build.
    """
    assets_blacklist: Mapping[str, Mapping[str, tuple[str, ...]]]
    purge_css_safelist: tuple[str, ...]
    sass_options: Mapping[str, t.Any]

    @classmethod
    def from_dict(cls, data: Mapping[str, t.Any]):
        """
        Validate a configuration mapping and build a frozen BuildConfig from
        it. Raises `ConfigLoadError` if the shape is wrong.
        """
        unknown = set(data) - set(InputBuildConfig.__annotations__)
        if unknown:
            raise ConfigLoadError(f'Unknown configuration keys: {", ".join(sorted(unknown))}')

        raw_blacklist = data.get('assets_blacklist', {})
        if not isinstance(raw_blacklist, Mapping):
            raise ConfigLoadError('assets_blacklist must be a table')
        blacklist = {}
        for asset_class, entry in raw_blacklist.items():
            if not isinstance(entry, Mapping):
                raise ConfigLoadError(f'assets_blacklist.{asset_class} must be a table')
            blacklist[asset_class] = {
                'files': _string_list(entry.get('files', []), f'assets_blacklist.{asset_class}.files'),
                'folders': _string_list(entry.get('folders', []), f'assets_blacklist.{asset_class}.folders'),
            }

        sass_options = data.get('sass_options', {})
        if not isinstance(sass_options, Mapping):
            raise ConfigLoadError('sass_options must be a table')

        return cls(
            assets_blacklist=freeze(blacklist),
            purge_css_safelist=_string_list(data.get('purge_css_safelist', []), 'purge_css_safelist'),
            sass_options=freeze(sass_options),
        )


def read_config_file(path: Path) -> InputBuildConfig:
    """
    Parse a TOML configuration file. Raises `ConfigLoadError` if it cannot be
    read or parsed.
    """
    try:
        with path.open('rb') as file:
            return t.cast(InputBuildConfig, tomllib.load(file))
    except (OSError, ValueError) as e:
        raise ConfigLoadError(str(e)) from e


def load_config(defaults: Mapping[str, t.Any] = DEFAULT_CONFIG, path: Path | None = None) -> BuildConfig:
    """
    Build the configuration for a run from @defaults and, if it exists and
    can be loaded, the file at @path. A missing or broken file only produces
    a warning; the defaults are used unchanged.
    """
    base = BuildConfig.from_dict(defaults)
    if path is None or not path.exists():
        print_with_style('No external build configuration found, using defaults')
        return base

    try:
        config = BuildConfig.from_dict(deep_merge(defaults, read_config_file(path)))
    except ConfigLoadError as e:
        print_with_style(f'Could not load {path}: {e}', file='stderr', style='yellow')
        print_with_style('Using default build configuration')
        return base

    print_with_style(f'Loaded external build configuration from {path}')
    return config


def blacklist_patterns(asset_class: str, config: BuildConfig) -> list[str]:
    """
    Negated glob patterns, relative to the source root, which exclude the
    blacklisted files and folders of @asset_class. File patterns come first
    and match the file name at any depth; folder patterns match directly
    under the asset class's root.
    """
    entry = config.assets_blacklist.get(asset_class)
    if not entry:
        return []
    root = f'assets/{asset_class}'
    file_patterns = [f'!{root}/**/{name}' for name in entry['files']]
    folder_patterns = [f'!{root}/{folder.lstrip("/")}' for folder in entry['folders']]
    return file_patterns + folder_patterns
