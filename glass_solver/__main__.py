# glass_solver/__main__.py
# Package entrypoint so you can run:
#   python -m glass_solver --help
#
# Examples:
#   python -m glass_solver --cuts cuts.csv --plate 260x180
#   python -m glass_solver --job job.json --out out/ --png plan.png

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    main()
