"""buildstamp CLI: Typer-based command-line interface.

Provides the ``buildstamp`` command with ``get`` and ``bump`` subcommands.
The version string is the only thing written to stdout; diagnostics go to
stderr through Rich.
"""
