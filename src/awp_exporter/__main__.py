"""Allow ``python -m awp_exporter``."""

from awp_exporter.cli import main

if __name__ == "__main__":
    main()
