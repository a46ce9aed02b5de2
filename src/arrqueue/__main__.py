"""Allow running arrqueue as ``python -m arrqueue``."""

from arrqueue.cli import main

if __name__ == "__main__":
    main()
