"""Turn a solution into files on disk, laid out for a specific IDE/agent tool.

Learn: Each tool looks for prompts, agent instructions, MCP servers and
skills in its own places. IDE_LAYOUTS is that table. plan_files() is
pure (solution JSON in, list of PlannedFile out) so it can be shown to
the user and confirmed before write_files() touches the disk.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional


@dataclass(frozen=True)
class IdeLayout:
    name: str
    prompts_dir: str
    agents_file: str
    mcp_file: str
    skills_dir: str
    mcp_root_key: str = "mcpServers"
    mcp_format: str = "json"


IDE_LAYOUTS: dict[str, IdeLayout] = {
    "vscode": IdeLayout(
        "vscode", ".github/prompts", "AGENTS.md", ".vscode/mcp.json", ".github/skills",
        mcp_root_key="servers",
    ),
    "cursor": IdeLayout(
        "cursor", ".cursor/commands", "AGENTS.md", ".cursor/mcp.json", ".cursor/skills",
    ),
    "codex": IdeLayout(
        "codex", "~/.codex/prompts", "AGENTS.md", ".codex/config.toml", ".codex/skills",
        mcp_format="toml",
    ),
    "claude-code": IdeLayout(
        "claude-code", ".claude/commands", "AGENTS.md", ".mcp.json", ".claude/skills",
    ),
    "codebuddy": IdeLayout(
        "codebuddy", ".codebuddy/commands", "AGENTS.md", ".mcp.json", ".codebuddy/skills",
    ),
    "qoder": IdeLayout(
        "qoder", ".qoder/commands", "AGENTS.md", ".mcp.json", "qoder/skills",
    ),
}

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]+')
_BARE_TOML_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass
class PlannedFile:
    path: Path
    content: str
    kind: str  # agent | prompt | mcp | skill


def sanitize_file_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("-", name or "").strip().strip(".")
    return cleaned or "untitled"


def resolve_path(base_dir: Path, relative: str) -> Path:
    """`~/...` is the user's home (codex prompts), anything else is project-relative."""
    if relative.startswith("~"):
        return Path(relative).expanduser()
    return base_dir / relative


def _inside(root: Path, candidate: Path) -> bool:
    try:
        candidate.resolve().relative_to(root.resolve())
        return True
    except ValueError:
        return False


# ─── MCP rendering ───────────────────────────────────────


def collect_mcp_servers(mcp_configs: list[dict]) -> tuple[dict, list[str]]:
    """name → parsed configJson. Entries that aren't a JSON object are skipped."""
    servers: dict = {}
    warnings: list[str] = []
    for mcp in mcp_configs:
        name = mcp.get("name") or "mcp"
        try:
            parsed = json.loads(mcp.get("configJson") or "")
        except ValueError:
            warnings.append(f"Skipped MCP '{name}': configJson is not valid JSON")
            continue
        if not isinstance(parsed, dict):
            warnings.append(f"Skipped MCP '{name}': configJson is not a JSON object")
            continue
        servers[name] = parsed
    return servers, warnings


def _toml_key(key: str) -> str:
    return key if _BARE_TOML_KEY.match(key) else json.dumps(key)


def _toml_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    return json.dumps(str(value))


def render_codex_toml(servers: dict) -> str:
    """[mcp_servers.<name>] tables with command/args and an env sub-table."""
    blocks = []
    for name, cfg in servers.items():
        table = f"mcp_servers.{_toml_key(name)}"
        lines = [f"[{table}]"]
        if "command" in cfg:
            lines.append(f"command = {_toml_value(cfg['command'])}")
        if "args" in cfg:
            lines.append(f"args = {_toml_value(list(cfg.get('args') or []))}")
        env = cfg.get("env") or {}
        if env:
            lines.append("")
            lines.append(f"[{table}.env]")
            for key, value in env.items():
                lines.append(f"{_toml_key(str(key))} = {_toml_value(value)}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


def render_mcp_file(servers: dict, layout: IdeLayout) -> str:
    if layout.mcp_format == "toml":
        return render_codex_toml(servers)
    return json.dumps({layout.mcp_root_key: servers}, indent=2) + "\n"


# ─── Planning and writing ────────────────────────────────


def plan_files(
    solution: dict, layout: IdeLayout, base_dir: Path
) -> tuple[list[PlannedFile], list[str]]:
    """Everything a solution would write, without touching the disk."""
    files: list[PlannedFile] = []
    warnings: list[str] = []

    agent = solution.get("agentConfig") or {}
    if agent.get("content"):
        files.append(
            PlannedFile(resolve_path(base_dir, layout.agents_file), agent["content"], "agent")
        )

    prompts_dir = resolve_path(base_dir, layout.prompts_dir)
    for prompt in solution.get("customPrompts") or []:
        file_name = f"{sanitize_file_name(prompt.get('name', ''))}.prompt.md"
        files.append(PlannedFile(prompts_dir / file_name, prompt.get("content", ""), "prompt"))

    servers, mcp_warnings = collect_mcp_servers(solution.get("mcpConfigs") or [])
    warnings.extend(mcp_warnings)
    if servers:
        files.append(
            PlannedFile(
                resolve_path(base_dir, layout.mcp_file),
                render_mcp_file(servers, layout),
                "mcp",
            )
        )

    skills_root = resolve_path(base_dir, layout.skills_dir)
    for skill in solution.get("skills") or []:
        skill_dir = skills_root / sanitize_file_name(skill.get("name", ""))
        files.append(PlannedFile(skill_dir / "SKILL.md", skill.get("skillMarkdown", ""), "skill"))
        for res in skill.get("resources") or []:
            target = skill_dir / (res.get("relativePath") or "") / sanitize_file_name(
                res.get("fileName", "")
            )
            if not _inside(skill_dir, target):
                warnings.append(
                    f"Skipped skill file '{res.get('fileName')}': path leaves the skill folder"
                )
                continue
            files.append(PlannedFile(target, res.get("fileContent", ""), "skill"))

    return files, warnings


def write_files(
    files: list[PlannedFile],
    confirm_overwrite: Optional[Callable[[Path], bool]] = None,
) -> tuple[list[Path], list[Path]]:
    """Write planned files. Existing files are kept unless confirm_overwrite says yes.

    Returns (written, skipped).
    """
    written: list[Path] = []
    skipped: list[Path] = []
    for planned in files:
        if planned.path.exists() and confirm_overwrite is not None:
            if not confirm_overwrite(planned.path):
                skipped.append(planned.path)
                continue
        planned.path.parent.mkdir(parents=True, exist_ok=True)
        planned.path.write_text(planned.content, encoding="utf-8")
        written.append(planned.path)
    return written, skipped
