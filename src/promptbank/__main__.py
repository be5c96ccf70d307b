"""
Entry point for running PromptBank as a module.

This allows users to run the CLI using:
    python -m promptbank [command] [options]
"""

from promptbank.cli.app import main

if __name__ == "__main__":
    main()
