"""Schemas for the /api/cli endpoints used by the acp tool.

Learn: Same payloads as the web DTOs plus isOwner/isLiked, and the
solution detail embeds every bundled item in full so the CLI can write
files without a second round-trip per item.
"""

from configplaza.schemas.common import CamelModel
from configplaza.schemas.resources import (
    AgentConfigRead,
    CustomPromptRead,
    McpConfigRead,
    SkillRead,
    SolutionRead,
)


class _CliFlags(CamelModel):
    is_owner: bool = False
    is_liked: bool = False


class CliMcpConfig(McpConfigRead, _CliFlags):
    pass


class CliAgentConfig(AgentConfigRead, _CliFlags):
    pass


class CliCustomPrompt(CustomPromptRead, _CliFlags):
    pass


class CliSolution(SolutionRead, _CliFlags):
    pass


class CliSolutionDetail(SolutionRead, _CliFlags):
    agent_config: AgentConfigRead
    mcp_configs: list[McpConfigRead] = []
    custom_prompts: list[CustomPromptRead] = []
    skills: list[SkillRead] = []
