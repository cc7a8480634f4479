"""python -m driftbox"""

from driftbox.cli import main

main()
