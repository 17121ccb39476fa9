"""
Removal of stale output: the full wipe run before every build, and the
post-purge pass over compiled theme stylesheets.
"""
import shutil
from pathlib import Path


THEME_CSS_DIR = Path('assets', 'css', 'theme')
KEPT_THEME_SUFFIXES = ('.min.css', '.purge.css')


def wipe(output_root: Path):
    """
    Delete everything inside @output_root. Does nothing if it does not exist.
    """
    if not output_root.exists():
        return
    for child in output_root.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def prune_intermediate(output_root: Path) -> int:
    """
    Delete the unminified, unpurged stylesheets left in the theme CSS
    directory, never touching `.min.css` or `.purge.css` files. Returns the
    number of files removed.
    """
    theme_dir = output_root / THEME_CSS_DIR
    if not theme_dir.is_dir():
        return 0
    removed = 0
    for path in sorted(theme_dir.glob('*.css')):
        if path.name.endswith(KEPT_THEME_SUFFIXES) or not path.is_file():
            continue
        path.unlink()
        removed += 1
    return removed
