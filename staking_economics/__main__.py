"""Allow running the package as a module: python -m staking_economics"""

import sys

from staking_economics.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
