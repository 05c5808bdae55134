"""Allow ``python -m prepdeck``."""

from prepdeck.cli.main import main

main()
