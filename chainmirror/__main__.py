"""Allow `python -m chainmirror`."""

from chainmirror.main import run

run()
