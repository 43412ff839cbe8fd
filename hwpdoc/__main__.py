"""
Module entry point for: python -m hwpdoc

Allows running the tools directly as a module:
    python -m hwpdoc extract-text --path <file> [options]
    python -m hwpdoc extract-rich --path <file> [options]
    python -m hwpdoc serve [--stdio]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
