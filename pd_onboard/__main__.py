"""Allow running as `python -m pd_onboard`."""

from pd_onboard.cli import main

main()
