"""
Main entry point for fsreclaim when run as a module.
Allows execution via: python -m fsreclaim
"""

from fsreclaim.cli import main

if __name__ == '__main__':
    main()
