"""
Checkable requirements for Steps, so that a missing compiler or minifier can
be reported with an install hint before any file is touched.
"""
from __future__ import annotations

import abc
import importlib.util
import shutil


class Dependency(abc.ABC):
    """
    A base class for requirements which can be checked and described.
    `a | b` is met when either side is, `a & b` when both are.
    """

    @property
    @abc.abstractmethod
    def satisfied(self) -> bool:
        """
        Whether this requirement is currently met.
        """

    @property
    @abc.abstractmethod
    def install_hint(self) -> str:
        """
        Help text explaining how to meet this requirement.
        """

    def __repr__(self):
        return f'{self.__class__.__name__}({self}, satisfied={self.satisfied})'

    def __or__(self, other: Dependency):
        return AnyDependency(self, other)

    def __and__(self, other: Dependency):
        return AllDependency(self, other)


class _GroupDependency(Dependency):
    operator = ''

    def __init__(self, *parts: Dependency):
        # Flatten chains like `a | b | c` into one group.
        self.parts: list[Dependency] = []
        for part in parts:
            if type(part) is type(self):
                self.parts.extend(part.parts)
            else:
                self.parts.append(part)

    def __str__(self):
        return '(' + f' {self.operator} '.join(str(p) for p in self.parts) + ')'


class AnyDependency(_GroupDependency):
    """
    Met when any of its parts is; the hint offers each alternative.
    """
    operator = '|'

    @property
    def satisfied(self):
        return any(p.satisfied for p in self.parts)

    @property
    def install_hint(self):
        return ' or '.join(p.install_hint for p in self.parts)


class AllDependency(_GroupDependency):
    """
    Met only when all of its parts are; the hint covers the missing ones.
    """
    operator = '&'

    @property
    def satisfied(self):
        return all(p.satisfied for p in self.parts)

    @property
    def install_hint(self):
        missing = [p for p in self.parts if not p.satisfied] or self.parts
        return '; '.join(p.install_hint for p in missing)


class PipDependency(Dependency):
    """
    A requirement on a package installed from the Python package index.
    @check_name is the importable module name when it differs from the
    distribution name, as with libsass (`sass`).
    """
    def __init__(self,
                 name: str,
                 source: str | None = None,
                 check_name: str | None = None):
        self.name = name
        self.source = source or name
        self.check_name = check_name or name

    def __str__(self):
        return self.name

    @property
    def satisfied(self):
        try:
            return importlib.util.find_spec(self.check_name) is not None
        except ModuleNotFoundError:
            # Raised for dotted names whose parent package is missing.
            return False

    @property
    def install_hint(self):
        return f'pip install {self.source}'


class WebExecDependency(Dependency):
    """
    A requirement on an executable found on PATH, such as the terser CLI.
    """
    def __init__(self, name: str, source: str | None = None):
        self.name = name
        self.source = source or name

    def __str__(self):
        return self.name

    @property
    def satisfied(self):
        return bool(shutil.which(self.name))

    @property
    def install_hint(self):
        return self.source
