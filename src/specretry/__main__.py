"""Allow ``python -m specretry``."""

from specretry.cli.main import main

main()
