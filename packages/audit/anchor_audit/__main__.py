"""Allow ``python -m anchor_audit``."""

from anchor_audit.cli.main import cli

if __name__ == '__main__':
    cli()
