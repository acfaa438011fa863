"""Entry point for ``python -m aiefabric``."""

from aiefabric.cli import main

if __name__ == "__main__":
    main()
