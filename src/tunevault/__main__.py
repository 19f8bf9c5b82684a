"""Allow ``python -m tunevault``."""

from tunevault.cli.app import run

if __name__ == "__main__":
    run()
