def main() -> None:
    """Entry point for ModelWhiz CLI."""
    from modelwhiz.ui.cli import cli

    cli()
