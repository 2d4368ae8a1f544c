"""ConfigPlaza: catalog and sharing platform for AI-tool configuration.

Users sign in with GitHub, publish agent configs, MCP server configs,
prompts, skills and solutions, like each other's public work, and pull
it onto their machine with the `acp` CLI.
"""

__version__ = "0.1.0"
