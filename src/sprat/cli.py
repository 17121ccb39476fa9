"""
The sprat command line interface.
"""
from __future__ import annotations

import argparse
import sys
import typing as t
from pathlib import Path

from .config import DEFAULT_CONFIG, DEFAULT_CONFIG_FILE, load_config
from .core import BuildError, BuildOptions, BuildSettings, Step, StepUnavailableException
from .pipeline import build_context
from .pretty_utils import print_with_style


def build_parser(**kw):
    parser = argparse.ArgumentParser(description='Build a static site into a deployable directory.', **kw)
    parser.add_argument('-i', '--input',
                        help='source directory to build from',
                        type=Path,
                        dest='input_dir',
                        default=Path('src'))
    parser.add_argument('-o', '--output',
                        help='output directory for built files; emptied before every build',
                        type=Path,
                        dest='output_dir',
                        default=Path('dist'))
    parser.add_argument('-c', '--config',
                        help='optional TOML file extending the default build configuration',
                        type=Path,
                        dest='config_file',
                        default=DEFAULT_CONFIG_FILE)
    parser.add_argument('--minify',
                        help='minify CSS and JavaScript instead of beautifying them',
                        action='store_true')
    parser.add_argument('--purge-css',
                        help='remove CSS rules unused by the built HTML from theme stylesheets',
                        action='store_true')
    parser.add_argument('--lite',
                        help='build the lite version; implies --minify and --purge-css',
                        action='store_true')
    parser.add_argument('--clean-only',
                        help='only empty the output directory',
                        action='store_true')
    parser.add_argument('--skip-images',
                        help='do not copy images',
                        action='store_true')
    parser.add_argument('--audit-steps',
                        help='show which steps are available and exit, instead of building',
                        action='store_true')
    return parser


def pprint_step(step: t.Type[Step]):
    """
    Prettily display dependency information for the given Step class.
    """
    missing = [str(d) for d in step.get_dependencies() if not d.satisfied]
    if missing:
        text = ', '.join(missing)
        print_with_style(f'✗ {step.__name__} (missing: {text})', style='red')
    else:
        print_with_style(f'✓ {step.__name__}', style='green')


def pprint_missing_deps(step: Step):
    """
    Prettily display an error for the given Step with missing dependencies.
    """
    print_with_style(
        f'{step.__class__.__name__} is unavailable due to missing dependencies!',
        file='stderr',
        style='red'
    )
    for dep in step.get_dependencies():
        if dep.satisfied:
            print_with_style(f'✓ {dep}', file='stderr', style='green')
        else:
            print_with_style(f'✗ {dep}: {dep.install_hint}', file='stderr', style='red')


def audit_steps():
    all_steps = Step.get_all_steps()
    available = set(Step.get_available_steps())
    groups = {
        'Available steps': [s for s in all_steps if s in available],
        'Unavailable steps': [s for s in all_steps if s not in available],
    }
    for label, steps in groups.items():
        print(f'{label} ({len(steps)})')
        for step in steps:
            pprint_step(step)


def main(arguments: list[str] | None = None):
    """
    sprat main function. Builds the site described by the command line
    arguments, exiting with status 1 if the build fails.
    """
    args = build_parser(prog='sprat').parse_args(arguments)

    if args.audit_steps:
        audit_steps()
        return

    options = BuildOptions.create(
        minify=args.minify,
        purge_css=args.purge_css,
        lite=args.lite,
        clean_only=args.clean_only,
        skip_images=args.skip_images,
    )
    settings = BuildSettings(input_dir=args.input_dir, output_dir=args.output_dir)

    try:
        config = load_config(DEFAULT_CONFIG, args.config_file)
        build_context(settings, config, options).run()
    except StepUnavailableException as e:
        pprint_missing_deps(e.step)
        sys.exit(1)
    except BuildError as e:
        print_with_style(f'Build failed: {e}', file='stderr', style='red')
        sys.exit(1)
