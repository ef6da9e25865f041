# main.py
import sys

from mixed_postman.cli import main

if __name__ == "__main__":
    sys.exit(main())
