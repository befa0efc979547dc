import shutil
from pathlib import Path
from invoke import task

PROJECT_ROOT = Path(__file__).parent.resolve()
BUILD_DIRS = ["build", "dist", "logtcp.egg-info", ".pytest_cache"]


@task
def test(c, k: str = "", verbose: bool = False):
    """
    Run the pytest suite.

    Usage:
      invoke test
      invoke test -k reconnect --verbose
    """
    args = ["pytest"]
    if verbose:
        args.append("-v")
    if k:
        args.append(f"-k '{k}'")
    c.run(" ".join(args), pty=True)


@task
def clean(c):
    """Remove build artifacts and caches."""
    for name in BUILD_DIRS:
        path = PROJECT_ROOT / name
        if path.exists():
            print(f"Removing {path}")
            shutil.rmtree(path)
    for cache in PROJECT_ROOT.rglob("__pycache__"):
        shutil.rmtree(cache, ignore_errors=True)
