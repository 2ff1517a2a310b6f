import sys

from airdraw.core.core import AppCore

if __name__ == "__main__":
    core = AppCore(sys.argv)
    sys.exit(core.run())
