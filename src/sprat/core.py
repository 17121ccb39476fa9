"""
Core classes and types for the sprat build pipeline.
"""
from __future__ import annotations

import abc
import concurrent.futures
import time
import typing as t
from pathlib import Path

from .clean import prune_intermediate, wipe
from .pretty_utils import print_with_style

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Sequence, Set
    from .config import BuildConfig
    from .dependencies import Dependency


T = t.TypeVar('T')
ContextDir = t.Literal['input_dir', 'output_dir']
BuildState = t.Literal['idle', 'cleaning', 'processing', 'pruning', 'done']

CONTEXT_DIR_KEYS: set[ContextDir] = {'input_dir', 'output_dir'}


class BuildSettings(t.TypedDict):
    """
    TypedDict for the source and output roots of a build.
    """
    input_dir: Path
    output_dir: Path


class BuildOptions(t.NamedTuple):
    """
    Per-invocation build flags. Use `BuildOptions.create()` so that `lite`
    is folded into `minify` and `purge_css`.
    """
    minify: bool = False
    purge_css: bool = False
    lite: bool = False
    clean_only: bool = False
    skip_images: bool = False

    @classmethod
    def create(cls,
               minify: bool = False,
               purge_css: bool = False,
               lite: bool = False,
               clean_only: bool = False,
               skip_images: bool = False):
        return cls(
            minify=minify or lite,
            purge_css=purge_css or lite,
            lite=lite,
            clean_only=clean_only,
            skip_images=skip_images,
        )


class BuildError(Exception):
    """
    Base class for errors which end a build.
    """


class ConfigLoadError(BuildError):
    """
    Raised when a configuration file exists but cannot be used. Never escapes
    `load_config()`, which falls back to the defaults.
    """


class CompileError(BuildError):
    """
    Raised when a Sass, CSS, or JavaScript transform rejects its input.
    """
    def __init__(self, path: Path, cause: BaseException | str):
        self.path = path
        self.cause = cause
        super().__init__(f'{path}: {cause}')


class FilesystemError(BuildError):
    """
    Raised when reading or writing a file fails.
    """
    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f'{path}: {cause.strerror or cause}')


class StepUnavailableException(BuildError):
    """
    Exception raised when a step to be used is unavailable due to missing
    dependencies.
    """
    def __init__(self, step: Step, *args: t.Any):
        self.step = step
        super().__init__(f'{step.__class__.__name__} is unavailable', *args)


class Context:
    """
    Holds the settings, configuration, and options of one build, and runs its
    Stages.
    """
    def __init__(self,
                 settings: BuildSettings,
                 config: BuildConfig,
                 options: BuildOptions,
                 stages: Sequence[Stage] = ()):
        self.settings = settings
        self.config = config
        self.options = options
        self.state: BuildState = 'idle'
        self.stages: list[Stage] = []
        for stage in stages:
            self.stages.append(stage)
            for rule in stage.rules:
                self.bind(rule.step)
        self._inputs: list[Path] | None = None

    def __getitem__(self, key: ContextDir) -> Path:
        return self.settings[key]

    def bind(self, step: Step):
        """
        Bind a Step to this Context, checking to ensure its availability.
        """
        if not step.is_available():
            raise StepUnavailableException(step)
        step.bind(self)

    def find_inputs(self, path: Path) -> Iterable[Path]:
        """
        Recursively yield the files under @path in sorted order, so that every
        file list built from it is stable between runs.
        """
        for candidate in sorted(path.iterdir()):
            if candidate.is_dir():
                yield from self.find_inputs(candidate)
            else:
                yield candidate

    def get_inputs(self) -> list[Path]:
        """
        Every file in the input directory, walked once per build.
        """
        if self._inputs is None:
            if not self['input_dir'].is_dir():
                raise BuildError(f'Input directory {self["input_dir"]} does not exist')
            self._inputs = list(self.find_inputs(self['input_dir']))
        return self._inputs

    def match_files(self, matcher: Matcher[T], paths: Iterable[Path] | None = None):
        """
        Return `(path, match)` pairs for every path accepted by @matcher,
        checking the input directory's files unless @paths is given.
        """
        candidates = self.get_inputs() if paths is None else paths
        return [
            (path, match) for path in candidates
            if (match := matcher(self, path))
        ]

    def log_step(self, source: Path, outputs: Sequence[Path]):
        print_with_style(f'{source} ⇒ {", ".join(str(p) for p in outputs)}', style='dim')

    def process_rule(self, rule: Rule):
        """
        Run @rule's Step for each file its Matcher accepts.
        """
        if rule.requires and not (self['input_dir'] / rule.requires).is_dir():
            print_with_style(f'No {rule.requires} directory found, skipping...')
            return
        for path, match in self.match_files(rule.matcher):
            output_paths = [calc(self, path, match) for calc in rule.path_calcs]
            try:
                written = rule.step(path, output_paths)
            except OSError as e:
                raise FilesystemError(path, e) from e
            except ValueError as e:
                # Undecodable text and malformed input from library parsers.
                raise CompileError(path, e) from e
            self.log_step(path, written or output_paths)

    def run_stage(self, stage: Stage):
        """
        Run the Rules of @stage in order.
        """
        print_with_style(stage.label)
        for note in stage.notes:
            print_with_style(note)
        for rule in stage.rules:
            self.process_rule(rule)

    def clean(self):
        self.state = 'cleaning'
        print_with_style(f'Cleaning {self["output_dir"]}...')
        try:
            wipe(self['output_dir'])
        except OSError as e:
            raise FilesystemError(self['output_dir'], e) from e

    def prune(self):
        self.state = 'pruning'
        print_with_style('Cleaning up large unminified CSS files...')
        try:
            removed = prune_intermediate(self['output_dir'])
        except OSError as e:
            raise FilesystemError(self['output_dir'], e) from e
        if removed:
            print_with_style(f'Removed {removed} large CSS file(s)', style='green')
        else:
            print_with_style('No large CSS files to clean', style='yellow')

    def process(self):
        """
        Run every Stage concurrently and wait for all of them. The first Stage
        to fail has its exception re-raised once the others have stopped.
        """
        self.state = 'processing'
        # Walk the tree before fanning out so the stages share one listing.
        self._inputs = None
        self.get_inputs()
        if not self.stages:
            return
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(self.stages)) as executor:
            futures = [executor.submit(self.run_stage, stage) for stage in self.stages]
            for future in concurrent.futures.as_completed(futures):
                future.result()

    def run(self):
        """
        Clean the output directory, then (unless only cleaning) process every
        Stage and prune intermediate CSS when purging.
        """
        if self.options.clean_only:
            self.clean()
            self.state = 'done'
            return

        print_with_style('Starting build process...')
        start = time.perf_counter()
        self.clean()
        self.process()
        if self.options.purge_css:
            self.prune()
        self.state = 'done'
        print_with_style(f'Build completed in {time.perf_counter() - start:.2f}s')
        print_with_style('Build successful!', style='green')


class Matcher(t.Generic[T], abc.ABC):
    """
    Abstract base class for Path Matchers.
    """
    @abc.abstractmethod
    def __call__(self, context: Context, path: Path) -> T:
        ...


class PathCalc(t.Generic[T], abc.ABC):
    """
    Abstract base class for path calculators which use `Matcher` match data to
    determine output paths from input paths.
    """
    @abc.abstractmethod
    def __call__(self, context: Context, path: Path, match: T) -> Path:
        ...


class Rule(t.Generic[T]):
    """
    A single processing rule: a matcher selecting input files, output path
    calculators, and the Step to run on each match. When @requires names a
    directory relative to the input directory, the rule is skipped with a
    notice if that directory is absent.
    """
    def __init__(self,
                 matcher: Matcher[T],
                 path_calc: t.Sequence[PathCalc[T]] | PathCalc[T],
                 step: Step,
                 requires: str | None = None):
        self.matcher = matcher
        self.step = step
        self.requires = requires
        if not isinstance(path_calc, t.Sequence):
            path_calc = [path_calc]
        self.path_calcs = list(path_calc)


class Stage:
    """
    An ordered group of Rules. Stages run concurrently with each other, while
    the Rules inside one Stage run in sequence.
    """
    def __init__(self, label: str, rules: Sequence[Rule], notes: Sequence[str] = ()):
        self.label = label
        self.rules = list(rules)
        self.notes = list(notes)


class Step(abc.ABC):
    """
    Abstract base class for Steps, the per-file transforms used to build
    Rules.
    """
    context: Context
    _step_registry: list[t.Type[Step]] = []

    def __init_subclass__(cls, **kw):
        super().__init_subclass__(**kw)
        cls._step_registry.append(cls)

    @classmethod
    def get_all_steps(cls):
        """
        Return a list of all currently known Steps.
        """
        return list(cls._step_registry)

    @classmethod
    def get_available_steps(cls):
        """
        Return a list of all currently known Steps whose requirements are met.
        """
        return [s for s in cls._step_registry if s.is_available()]

    @classmethod
    def is_available(cls) -> bool:
        """
        Return whether this Step's requirements are installed, making it
        available for use.
        """
        return all(d.satisfied for d in cls.get_dependencies())

    @classmethod
    def get_dependencies(cls) -> Set[Dependency]:
        """
        Return the requirements for this Step.
        """
        return set()

    def bind(self, context: Context):
        """
        Bind this Step to a Context.
        """
        self.context = context

    @abc.abstractmethod
    def __call__(self, path: Path, output_paths: list[Path]) -> None | list[Path]:
        """
        Process @path into @output_paths. A Step which writes somewhere other
        than @output_paths returns the paths it actually wrote.
        """
