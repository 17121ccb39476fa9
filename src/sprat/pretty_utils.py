"""
Internal utilities for styled console output.
"""
import rich.console


# No explicit file, so rich resolves sys.stdout/sys.stderr on every print and
# honors redirection done after import.
_consoles = {
    'stdout': rich.console.Console(highlight=False),
    'stderr': rich.console.Console(stderr=True, highlight=False),
}


def print_with_style(*args, sep=' ', end='\n', file: str = 'stdout', style=None):
    """
    print() replacement writing through a rich console, so that stages running
    on different threads never interleave partial lines.
    """
    _consoles[file].print(*args, sep=sep, end=end, style=style, markup=False, soft_wrap=True)
