"""Allow ``python -m ftapi``."""

from ftapi.app import main

main()
