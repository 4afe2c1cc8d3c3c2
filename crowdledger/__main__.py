"""Entry point for ``python -m crowdledger``."""

from crowdledger.cli import main

if __name__ == "__main__":
    main()
