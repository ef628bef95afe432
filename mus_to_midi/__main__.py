import sys

from .mus_to_midi import main

raise SystemExit(main(sys.argv))
