"""Allow running as: python -m depfetch"""

from depfetch.cli import main

main()
