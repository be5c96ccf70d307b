"""Interactive console input for PromptBank."""
